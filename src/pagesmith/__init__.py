"""
Pagesmith - a minimal static site builder for markdown pages.

Renders every markdown document under a pages directory into a shared HTML
template and writes the results to an output directory, optionally staying
resident to rebuild pages as they change.
"""

__version__ = "1.0.0"

from .config import SiteConfig
from .file_finder import SourceFinder
from .normalizer import OutputNormalizer
from .publisher import Publisher
from .renderer import MarkdownRenderer
from .site_builder import SiteBuilder
from .template import TemplateCompositor, TemplateMarkerError
from .watcher import ChangeEvent, WatchCoordinator, WatchError, WatchState

__all__ = [
    "__version__",
    "ChangeEvent",
    "MarkdownRenderer",
    "OutputNormalizer",
    "Publisher",
    "SiteBuilder",
    "SiteConfig",
    "SourceFinder",
    "TemplateCompositor",
    "TemplateMarkerError",
    "WatchCoordinator",
    "WatchError",
    "WatchState",
]
