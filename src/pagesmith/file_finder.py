"""
Source discovery: recognising source documents and walking the pages tree.
"""

import os
from typing import Iterator, List, Optional, Tuple


class SourceFinder:
    """
    Recognises source documents by extension and walks the source tree.

    The walk is top-down and in lexical order, so a directory is always
    reported before anything inside it.
    """

    def __init__(self, base_directory: str, extension: str = "md"):
        """
        Initialise the finder.

        Args:
            base_directory: Root of the source tree
            extension: Source document extension, without the leading dot
        """
        self.base_directory = base_directory
        self.extension = extension

    def is_source_document(self, path: str) -> bool:
        """
        Check whether a path names a source document.

        Only the final path component is considered: the text after its last
        ``.`` must equal the configured extension, and the text before it must
        not be empty, so a bare ``.md`` is not a document.

        Args:
            path: Any file path

        Returns:
            True for source documents, False otherwise (including no extension)
        """
        stem, separator, extension = os.path.basename(path).rpartition(".")
        return bool(stem and separator) and extension == self.extension

    def list_directory(self, directory: str) -> Tuple[List[str], List[str]]:
        """
        List one directory.

        Symbolic links to directories are not followed.

        Args:
            directory: Directory to list

        Returns:
            (documents, subdirectories) as full paths, each sorted by name

        Raises:
            OSError: If the directory cannot be read
        """
        documents = []
        subdirectories = []
        with os.scandir(directory) as entries:
            for entry in sorted(entries, key=lambda e: e.name):
                if entry.is_dir():
                    if not entry.is_symlink():
                        subdirectories.append(os.path.join(directory, entry.name))
                elif self.is_source_document(entry.name):
                    documents.append(os.path.join(directory, entry.name))
        return documents, subdirectories

    def walk(self, top: Optional[str] = None) -> Iterator[Tuple[str, List[str]]]:
        """
        Walk a tree, yielding each directory with the source documents directly in it.

        Args:
            top: Directory to walk, defaults to the base directory

        Yields:
            (directory, documents) pairs; documents are full paths, sorted

        Raises:
            OSError: If any directory in the tree cannot be read
        """
        directory = top or self.base_directory
        documents, subdirectories = self.list_directory(directory)
        yield directory, documents
        for subdirectory in subdirectories:
            yield from self.walk(subdirectory)

    def find_source_documents(self) -> List[str]:
        """
        Find every source document under the base directory.

        Returns:
            Paths in walk order

        Raises:
            OSError: If the tree cannot be walked
        """
        return [document for _, documents in self.walk() for document in documents]

    def validate_directory(self) -> None:
        """
        Validate that the base directory exists and is a directory.

        Raises:
            FileNotFoundError: If the directory doesn't exist
            NotADirectoryError: If the path is not a directory
        """
        if not os.path.exists(self.base_directory):
            raise FileNotFoundError(f"Directory {self.base_directory} does not exist")

        if not os.path.isdir(self.base_directory):
            raise NotADirectoryError(f"{self.base_directory} is not a directory")
