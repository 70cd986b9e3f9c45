"""
Site layout configuration.

The command line always builds with the default layout, relative to the
current working directory:

    pages/          source documents (*.md), any depth
    template.html   page template containing the ``{{ post }}`` marker
    out/            rendered pages (*.html), flat by file name
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SiteConfig:
    """Locations and naming rules shared by all build components."""

    pages_directory: str = "pages/"
    output_directory: str = "out/"
    template_file: str = "template.html"
    template_marker: str = "{{ post }}"
    source_extension: str = "md"
    output_extension: str = "html"
