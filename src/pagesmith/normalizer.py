"""
Mapping from source document paths to output file paths.
"""

import os


class OutputNormalizer:
    """
    Derives the output path for a source document.

    Output is flat: only the document's file name is used, so
    "pages/blog/My Cool File.md" becomes "out/my-cool-file.html".
    """

    def __init__(self, output_directory: str, output_extension: str = "html"):
        self.output_directory = output_directory
        self.output_extension = output_extension

    def to_output_path(self, source_path: str) -> str:
        """
        Convert a source document path into its output path.

        The file name loses its extension, is lowercased, has every space
        replaced with a hyphen, and gets the output extension.

        Args:
            source_path: Path of a source document, including its directory

        Returns:
            Path inside the output directory

        Raises:
            ValueError: If the path has no directory part, no extension, or
                nothing before the extension
        """
        directory, name = os.path.split(source_path)
        stem, separator, _ = name.rpartition(".")
        if not directory or not separator or not stem:
            raise ValueError(f"Not a source document path: {source_path!r}")

        slug = stem.lower().replace(" ", "-")
        return os.path.join(self.output_directory, f"{slug}.{self.output_extension}")
