"""
Markdown to HTML rendering.
"""

from typing import Callable, List, Optional

import markdown

DEFAULT_EXTENSIONS: List[str] = ["extra", "toc", "sane_lists"]

# Inline code spans on consecutive lines otherwise run together in the page
ADJACENT_CODE = "</code>\n<code>"
SEPARATED_CODE = "</code>\n<br>\n<code>"

# Undecodable bytes survive the round trip as lone surrogates
SOURCE_ERRORS = "surrogateescape"


class MarkdownRenderer:
    """
    Converts source document bytes into rendered HTML bytes.

    The engine defaults to Python-Markdown with heading ids (``toc``) and the
    common formatting extensions (``extra``, ``sane_lists``). Any
    ``str -> str`` callable can be supplied instead.
    """

    def __init__(
        self,
        engine: Optional[Callable[[str], str]] = None,
        extensions: Optional[List[str]] = None,
    ):
        self.extensions = list(extensions or DEFAULT_EXTENSIONS)
        self._engine = engine or self._markdown_to_html

    def _markdown_to_html(self, text: str) -> str:
        return markdown.markdown(text, extensions=self.extensions)

    def render(self, source: bytes) -> bytes:
        """
        Render a document.

        Args:
            source: Raw document bytes, normally UTF-8

        Returns:
            Rendered HTML bytes. Bytes that are not valid UTF-8 are passed
            through unchanged.
        """
        html = self._engine(source.decode("utf-8", errors=SOURCE_ERRORS))
        return html.replace(ADJACENT_CODE, SEPARATED_CODE).encode(
            "utf-8", errors=SOURCE_ERRORS
        )
