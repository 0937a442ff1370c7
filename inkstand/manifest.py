"""Manifest export for Inkstand.

The manifest is the derived index the external renderer reads: posts in
listing order, pages in navigation order, category and tag groups, and the
permalink of every document. It is written in one or more formats through a
small registry of writers.

Classes:
    ManifestWriter: Base class for manifest formats.
    JsonManifestWriter: Writes manifest.json.
    YamlManifestWriter: Writes manifest.yaml.
    ManifestRegistry: Runs every registered writer.

Functions:
    build_manifest: Build the manifest mapping from a load result.
    create_default_manifest_registry: Registry with the JSON and YAML writers.
    export_manifest: Load, validate and write the manifest of a content tree.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from .content import ContentError, ContentStore

if TYPE_CHECKING:
    from .content import LoadResult, Page, Post

logger = logging.getLogger(__name__)


def _post_entry(post: Post) -> dict[str, Any]:
    return {
        "identifier": post.identifier,
        "title": post.title,
        "date": post.date.isoformat(),
        "url": post.url,
        "path": str(post.rel_path),
        "categories": list(post.categories),
        "tags": list(post.tags),
        "pin": post.pin,
        "author": post.author,
    }


def _page_entry(page: Page) -> dict[str, Any]:
    return {
        "title": page.title,
        "url": page.url,
        "path": str(page.rel_path),
        "icon": page.icon,
        "order": page.order,
    }


def build_manifest(result: LoadResult) -> dict[str, Any]:
    """Build the manifest mapping from a load result.

    Args:
        result: Content store load result.

    Returns:
        Mapping with ``posts``, ``pages``, ``categories`` and ``tags`` keys.
        Groups list post identifiers in listing order.
    """
    posts = result.posts
    return {
        "posts": [_post_entry(p) for p in posts.listing()],
        "pages": [_page_entry(p) for p in result.pages.navigation()],
        "categories": {
            name: [p.identifier for p in group]
            for name, group in posts.categories().items()
        },
        "tags": {
            name: [p.identifier for p in group] for name, group in posts.tags().items()
        },
    }


class ManifestWriter(ABC):
    """Abstract base class for manifest formats.

    Subclasses pick the output filename and serialize the manifest mapping.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename, such as 'manifest.json'."""
        ...

    @abstractmethod
    def serialize(self, manifest: dict[str, Any]) -> str:
        """Serialize the manifest mapping to text."""
        ...

    def write(self, output_dir: Path, manifest: dict[str, Any]) -> Path:
        """Serialize and write the manifest to the output directory.

        Returns:
            Path of the written file.
        """
        output_path = output_dir / self.filename
        output_path.write_text(self.serialize(manifest), encoding="utf-8")
        return output_path


class JsonManifestWriter(ManifestWriter):
    """Writes the manifest as indented JSON."""

    @property
    def filename(self) -> str:
        return "manifest.json"

    def serialize(self, manifest: dict[str, Any]) -> str:
        return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"


class YamlManifestWriter(ManifestWriter):
    """Writes the manifest as YAML, keeping key order."""

    @property
    def filename(self) -> str:
        return "manifest.yaml"

    def serialize(self, manifest: dict[str, Any]) -> str:
        return yaml.safe_dump(manifest, sort_keys=False, allow_unicode=True)


class ManifestRegistry:
    """Registry for managing manifest writers.

    Attributes:
        _writers: List of registered writers.
    """

    def __init__(self) -> None:
        self._writers: list[ManifestWriter] = []

    def register(self, writer: ManifestWriter) -> None:
        """Register a manifest writer."""
        self._writers.append(writer)

    def write_all(self, output_dir: Path, manifest: dict[str, Any]) -> list[Path]:
        """Write the manifest with every registered writer.

        Args:
            output_dir: Directory to write the files to; created if missing.
            manifest: Manifest mapping.

        Returns:
            Paths of the written files.
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        return [writer.write(output_dir, manifest) for writer in self._writers]


def create_default_manifest_registry() -> ManifestRegistry:
    """Create a registry with the JSON and YAML writers."""
    registry = ManifestRegistry()
    registry.register(JsonManifestWriter())
    registry.register(YamlManifestWriter())
    return registry


def export_manifest(
    content_dir: Path,
    output_dir: Path,
    config: dict[str, Any] | None = None,
    registry: ManifestRegistry | None = None,
) -> list[Path]:
    """Load a content tree and write its manifest.

    Nothing is written when any document is invalid.

    Args:
        content_dir: Root directory of the content tree.
        output_dir: Directory to write the manifest files to.
        config: Project configuration.
        registry: Writers to use; JSON and YAML by default.

    Returns:
        Paths of the written files.

    Raises:
        ContentError: If any document fails validation.
    """
    try:
        result = ContentStore(content_dir, config).load(strict=True)
    except ContentError:
        logger.debug("Manifest not written; content has errors")
        raise
    manifest = build_manifest(result)
    written = (registry or create_default_manifest_registry()).write_all(output_dir, manifest)
    logger.debug("Wrote %s", ", ".join(str(p) for p in written))
    return written
