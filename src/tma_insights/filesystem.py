"""
FileSystem abstraction for TMA Insights.

PURPOSE: Injectable file access so dataset loading can be tested without disk I/O.
AI CONTEXT: Only DatasetStore touches this; the engine itself never does I/O.

DESIGN:
- Protocol defines the handful of operations the dataset store needs
- RealFileSystem delegates to os / open()
- MockFileSystem in tests/conftest.py keeps files in a dict

USAGE:
    store = DatasetStore(filesystem=RealFileSystem())
    store = DatasetStore(filesystem=mock_fs)  # pytest fixture
"""

from __future__ import annotations

import os
from typing import Protocol

__all__ = ["FileSystem", "RealFileSystem"]


class FileSystem(Protocol):
    """
    File operations used by the dataset store.

    All paths are plain strings. read_text raises FileNotFoundError for a
    missing file and OSError for anything else that goes wrong; callers
    decide whether that is fatal.
    """

    def exists(self, path: str) -> bool:
        """True if the path exists (file or directory). Never raises."""
        ...

    def is_file(self, path: str) -> bool:
        """True if the path exists and is a regular file. Never raises."""
        ...

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create a directory and its parents (`mkdir -p`).

        Args:
            path: Directory to create.
            exist_ok: Don't raise when it already exists.
        """
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """
        Read a whole file as text.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """
        Write (overwrite) a whole file.

        Raises:
            OSError: If the parent directory is missing or not writable.
        """
        ...


class RealFileSystem:
    """Production implementation backed by the os module and open()."""

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def is_file(self, path: str) -> bool:
        return os.path.isfile(path)

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        os.makedirs(path, exist_ok=exist_ok)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """
        Read file contents from disk.

        Example:
            >>> RealFileSystem().read_text("tma_dataset.json")
            '{"balanceSeconds": 0, ...}'
        """
        with open(path, encoding=encoding) as f:
            return f.read()

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        with open(path, "w", encoding=encoding) as f:
            f.write(content)
