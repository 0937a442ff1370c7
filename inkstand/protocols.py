"""Protocol definitions for Inkstand.

This module defines the interfaces the content store depends on, so file
discovery and record building can be swapped out, for example with in-memory
fakes in tests.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Document, Page, Post


@runtime_checkable
class ContentLoader(Protocol):
    """Protocol for discovering content files."""

    @abstractmethod
    def iter_files(self) -> list[Path]:
        """List the content files to load.

        Returns:
            Paths to markdown files, in a stable order.
        """
        ...


@runtime_checkable
class RecordBuilder(Protocol):
    """Protocol for turning source files into Page and Post records."""

    @abstractmethod
    def read(self, path: Path) -> Document:
        """Read a source file into a Document.

        Raises:
            MetadataError: If the file has no usable metadata block.
        """
        ...

    @abstractmethod
    def build(self, document: Document) -> Page | Post:
        """Build a typed record from a Document.

        Raises:
            MetadataError: If the front matter does not fit the schema.
        """
        ...
