"""
Page template composition around a single substitution marker.
"""

from typing import Optional

from pagesmith.app_logger import AppLogger, LogContext, get_default_logger


class TemplateMarkerError(ValueError):
    """The template does not contain the substitution marker."""

    def __init__(self, marker: str, template_file: Optional[str] = None):
        self.marker = marker
        self.template_file = template_file
        location = f" in {template_file}" if template_file else ""
        super().__init__(f'Can\'t find "{marker}" template string{location}')


class TemplateCompositor:
    """
    Places rendered content into a page template.

    The template is split at the first occurrence of the marker. Any further
    occurrences are left untouched in the trailing part, with a warning.
    """

    def __init__(self, marker: str = "{{ post }}", logger: Optional[AppLogger] = None):
        self.marker = marker
        self._marker_bytes = marker.encode("utf-8")
        self._logger = logger or get_default_logger()
        self._log_context = LogContext(component="TemplateCompositor")

    def compose(
        self, template: bytes, content: bytes, template_file: Optional[str] = None
    ) -> bytes:
        """
        Substitute content for the marker.

        Args:
            template: Template bytes
            content: Rendered content bytes, inserted verbatim
            template_file: Template location, used in diagnostics only

        Returns:
            The composed page

        Raises:
            TemplateMarkerError: If the marker is missing from the template
        """
        occurrences = template.count(self._marker_bytes)
        if occurrences == 0:
            raise TemplateMarkerError(self.marker, template_file)
        if occurrences > 1:
            self._logger.warning(
                "Template contains the marker more than once, using the first",
                context=self._log_context,
                marker=self.marker,
                occurrences=occurrences,
            )

        prefix, _, suffix = template.partition(self._marker_bytes)
        return prefix + content + suffix
