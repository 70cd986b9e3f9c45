"""
Publishing source documents into the output tree.

This module ties the renderer, the template compositor and the output
normaliser together. It has no partial-failure recovery: any read or write
error propagates to the caller.
"""

import os
from typing import Optional

from pagesmith.app_logger import AppLogger, LogContext, get_default_logger
from pagesmith.config import SiteConfig
from pagesmith.normalizer import OutputNormalizer
from pagesmith.renderer import MarkdownRenderer
from pagesmith.template import TemplateCompositor

OUTPUT_FILE_MODE = 0o644


class Publisher:
    """
    Produces one output page per source document and cleans old output.

    The template and the document are read from disk on every call, so edits
    to either take effect on the next publish without any cache invalidation.
    """

    def __init__(
        self,
        config: Optional[SiteConfig] = None,
        renderer: Optional[MarkdownRenderer] = None,
        compositor: Optional[TemplateCompositor] = None,
        normalizer: Optional[OutputNormalizer] = None,
        logger: Optional[AppLogger] = None,
    ):
        """
        Initialise the publisher.

        Args:
            config: Site layout, defaults to the standard layout
            renderer: Document renderer
            compositor: Template compositor for the configured marker
            normalizer: Output path mapping for the configured output directory
            logger: Optional AppLogger, defaults to the application logger
        """
        self.config = config or SiteConfig()
        self._logger = logger or get_default_logger()
        self.renderer = renderer or MarkdownRenderer()
        self.compositor = compositor or TemplateCompositor(
            self.config.template_marker, logger=self._logger
        )
        self.normalizer = normalizer or OutputNormalizer(
            self.config.output_directory, self.config.output_extension
        )
        self._log_context = LogContext(component="Publisher")

    def publish(self, source_path: str) -> str:
        """
        Render one source document into its output page.

        Args:
            source_path: Path of the source document

        Returns:
            Path of the written output page

        Raises:
            OSError: If the template or document can't be read, or the page can't be written
            TemplateMarkerError: If the template has no marker
        """
        print(f"Updating {source_path}")

        with open(self.config.template_file, "rb") as f:
            template = f.read()
        with open(source_path, "rb") as f:
            source = f.read()

        page = self.compositor.compose(
            template, self.renderer.render(source), self.config.template_file
        )

        output_path = self.normalizer.to_output_path(source_path)
        os.makedirs(self.config.output_directory, exist_ok=True)
        fd = os.open(output_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, OUTPUT_FILE_MODE)
        with os.fdopen(fd, "wb") as f:
            f.write(page)

        self._logger.debug(
            "Published page",
            context=LogContext(
                component=self._log_context.component,
                operation="publish",
                path=source_path,
            ),
            output_path=output_path,
            size=len(page),
        )
        return output_path

    def clean_output_tree(self) -> int:
        """
        Delete every output-extension file under the output directory.

        Files are removed whether or not a source document still produces
        them. A missing output directory is left alone.

        Returns:
            Number of files removed

        Raises:
            OSError: If a file can't be deleted
        """
        suffix = f".{self.config.output_extension}"
        removed = 0

        for directory, _, filenames in os.walk(self.config.output_directory):
            for name in filenames:
                if os.path.splitext(name)[1] == suffix:
                    os.remove(os.path.join(directory, name))
                    removed += 1

        self._logger.debug(
            "Cleaned output tree",
            context=LogContext(
                component=self._log_context.component,
                operation="clean",
                path=self.config.output_directory,
            ),
            removed=removed,
        )
        return removed
