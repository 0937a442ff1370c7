"""Content store for Inkstand.

This module discovers the markdown documents of a site, splits them into front
matter and body, and builds typed Page and Post records through the metadata
schema.

Key classes:
- Document: A source file as authored (path, metadata, body).
- Page / Post: Typed records the renderer consumes.
- FileContentLoader: Discovers markdown files under the content directory.
- UrlDeriver: Derives post identifiers and permalinks.
- DocumentBuilder: Turns a source file into a Page or Post.
- ContentStore: Facade that loads a whole content tree.
"""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any

from .collections import PageCollection, PostCollection
from .config import DEFAULT_CONFIG
from .frontmatter import FrontMatterError, parse_document
from .protocols import ContentLoader, RecordBuilder
from .schema import (
    LAYOUT_POST,
    MetadataError,
    resolve_layout,
    validate_page,
    validate_post,
)
from .utils import is_hidden_path, is_markdown, slugify

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """A source document as authored.

    Attributes:
        path: Absolute path to the source file.
        rel_path: Path relative to the content directory.
        metadata: Front matter in authored key order.
        body: Raw markdown body following the metadata block.
    """

    path: Path
    rel_path: PurePosixPath
    metadata: dict[str, Any]
    body: str


@dataclass(frozen=True)
class Page:
    """A navigable page such as the about page.

    Attributes:
        path: Absolute path to the source file.
        rel_path: Path relative to the content directory.
        title: Display title.
        icon: Symbolic icon name for navigation, if any.
        order: Navigation sort key, if any.
        slug: URL-friendly slug of the file stem.
        url: Permalink of the page.
        body: Raw markdown body.
        metadata: Front matter as authored.
    """

    path: Path
    rel_path: PurePosixPath
    title: str
    icon: str | None
    order: int | None
    slug: str
    url: str
    body: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)
    layout: str = "page"


@dataclass(frozen=True)
class Post:
    """A dated blog post.

    Attributes:
        path: Absolute path to the source file.
        rel_path: Path relative to the content directory.
        title: Display title.
        date: Publication timestamp with its authored UTC offset.
        categories: Ordered categories.
        tags: Tags in first-seen order, without duplicates.
        pin: Whether the post is listed above unpinned posts.
        author: Attribution, the site-wide author when not overridden.
        slug: URL-friendly slug of the title.
        identifier: Unique ``YYYY-MM-DD-slug`` identifier.
        url: Permalink of the post.
        body: Raw markdown body.
        metadata: Front matter as authored.
    """

    path: Path
    rel_path: PurePosixPath
    title: str
    date: datetime
    categories: tuple[str, ...]
    tags: tuple[str, ...]
    pin: bool
    author: str
    slug: str
    identifier: str
    url: str
    body: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)
    layout: str = "post"


Record = Page | Post


class ContentError(Exception):
    """One or more documents failed to load.

    Attributes:
        errors: Every MetadataError found, in path order.
    """

    def __init__(self, errors: list[MetadataError]):
        self.errors = list(errors)
        noun = "document" if len(self.errors) == 1 else "documents"
        lines = [f"{len(self.errors)} {noun} failed validation:"]
        lines.extend(f"  {error}" for error in self.errors)
        super().__init__("\n".join(lines))


class FileContentLoader:
    """Discovers markdown files under a content directory.

    Hidden paths and configured exclusions are skipped. An exclude entry is a
    file or directory name, or a glob matched against the relative path. Files are
    returned sorted by path so every run sees the same order.

    Attributes:
        content_dir: Root directory of the content tree.
        exclude: Names or glob patterns to skip anywhere in the tree.
    """

    def __init__(self, content_dir: Path, exclude: list[str] | None = None):
        self.content_dir = content_dir
        self.exclude = [str(entry).strip("/") for entry in exclude or []]

    def iter_files(self) -> list[Path]:
        """List all markdown files in the content tree.

        Returns:
            Sorted list of paths to markdown files.
        """
        files: list[Path] = []
        for path in self.content_dir.rglob("*"):
            if path.is_dir():
                continue
            rel = path.relative_to(self.content_dir)
            if is_hidden_path(rel):
                continue
            if self._is_excluded(rel):
                continue
            if is_markdown(path):
                files.append(path)
        return sorted(files)

    def _is_excluded(self, rel: Path) -> bool:
        posix = rel.as_posix()
        for pattern in self.exclude:
            if fnmatch(posix, pattern) or any(fnmatch(part, pattern) for part in rel.parts):
                return True
        return False


class UrlDeriver:
    """Derives post identifiers and permalinks.

    Post permalinks come from a pattern with ``:identifier``, ``:year``,
    ``:month``, ``:day``, ``:slug`` and ``:categories`` tokens. Page permalinks come from the file
    location, dropping ``_``-prefixed collection directories.

    Attributes:
        pattern: Post permalink pattern.
    """

    def __init__(self, pattern: str = DEFAULT_CONFIG["permalink"]):
        self.pattern = pattern

    @staticmethod
    def identifier(published: datetime, title: str) -> str:
        """Return the ``YYYY-MM-DD-slug`` identifier of a post."""
        return f"{published:%Y-%m-%d}-{slugify(title)}"

    def post_url(self, published: datetime, slug: str, categories: list[str]) -> str:
        """Derive the permalink of a post.

        Args:
            published: Post timestamp; the date is taken in its own offset.
            slug: Slug of the post title.
            categories: Post categories.

        Returns:
            Permalink with a leading and trailing slash.
        """
        tokens = {
            ":identifier": f"{published:%Y-%m-%d}-{slug}",
            ":categories": "/".join(slugify(c) for c in categories),
            ":year": f"{published:%Y}",
            ":month": f"{published:%m}",
            ":day": f"{published:%d}",
            ":slug": slug,
            ":title": slug,
        }
        url = self.pattern
        for token, value in tokens.items():
            url = url.replace(token, value)
        return _normalize_url(url)

    @staticmethod
    def page_url(rel_path: PurePosixPath) -> str:
        """Derive the permalink of a page.

        Args:
            rel_path: Page path relative to the content directory.

        Returns:
            Permalink with a leading and trailing slash.
        """
        segments = [slugify(p) for p in rel_path.parent.parts if not p.startswith("_")]
        slug = slugify(rel_path.stem)
        if slug != "index":
            segments.append(slug)
        return _normalize_url("/".join(segments))


def _normalize_url(url: str) -> str:
    parts = [p for p in url.split("/") if p]
    path = "/".join(parts)
    return f"/{path}/" if path else "/"


class DocumentBuilder:
    """Builds Page and Post records from source files.

    Attributes:
        content_dir: Root directory of the content tree.
        config: Project configuration.
        url_deriver: URL deriver instance.
    """

    def __init__(self, content_dir: Path, config: dict[str, Any] | None = None):
        self.content_dir = content_dir
        self.config = config or DEFAULT_CONFIG
        self.url_deriver = UrlDeriver(str(self.config.get("permalink") or DEFAULT_CONFIG["permalink"]))

    def read(self, path: Path) -> Document:
        """Read a source file into a Document.

        Raises:
            FrontMatterError: If the file cannot be read as UTF-8 or has no usable
                metadata block.
        """
        rel = PurePosixPath(path.relative_to(self.content_dir).as_posix())
        try:
            text = path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as exc:
            raise FrontMatterError(path, f"cannot read file: {exc}") from exc
        metadata, body = parse_document(text, source_path=path)
        return Document(path=path, rel_path=rel, metadata=metadata, body=body)

    def build(self, document: Document) -> Record:
        """Build a typed record from a Document.

        Raises:
            MetadataError: If the front matter does not fit the schema.
        """
        layout = resolve_layout(
            document.metadata,
            document.rel_path,
            self.config.get("layouts", {}),
            document.path,
        )
        if layout == LAYOUT_POST:
            return self._build_post(document)
        return self._build_page(document)

    def _build_post(self, document: Document) -> Post:
        values = validate_post(
            document.metadata, document.path, str(self.config.get("author") or "")
        )
        slug = slugify(values["title"])
        return Post(
            path=document.path,
            rel_path=document.rel_path,
            title=values["title"],
            date=values["date"],
            categories=tuple(values["categories"]),
            tags=tuple(values["tags"]),
            pin=values["pin"],
            author=values["author"],
            slug=slug,
            identifier=self.url_deriver.identifier(values["date"], values["title"]),
            url=self.url_deriver.post_url(values["date"], slug, values["categories"]),
            body=document.body,
            metadata=document.metadata,
        )

    def _build_page(self, document: Document) -> Page:
        values = validate_page(document.metadata, document.path)
        return Page(
            path=document.path,
            rel_path=document.rel_path,
            title=values["title"],
            icon=values["icon"],
            order=values["order"],
            slug=slugify(document.rel_path.stem),
            url=self.url_deriver.page_url(document.rel_path),
            body=document.body,
            metadata=document.metadata,
        )


@dataclass
class LoadResult:
    """Result of loading a content tree.

    Attributes:
        documents: Every document whose metadata block could be read.
        posts: Posts that passed validation.
        pages: Pages that passed validation.
        errors: Every problem found, in path order.
    """

    documents: list[Document]
    posts: PostCollection
    pages: PageCollection
    errors: list[MetadataError]

    @property
    def ok(self) -> bool:
        return not self.errors


class ContentStore:
    """Facade for loading a content tree into pages and posts.

    Attributes:
        content_dir: Root directory of the content tree.
        config: Project configuration.
    """

    def __init__(
        self,
        content_dir: Path,
        config: dict[str, Any] | None = None,
        loader: ContentLoader | None = None,
        builder: RecordBuilder | None = None,
    ):
        self.content_dir = content_dir
        self.config = config or DEFAULT_CONFIG
        self._loader = loader or FileContentLoader(content_dir, self.config.get("exclude"))
        self._builder = builder or DocumentBuilder(content_dir, self.config)

    def load(self, strict: bool = False) -> LoadResult:
        """Load every document and build its record.

        Invalid documents are collected as errors instead of stopping the load,
        so one run reports every authoring mistake.

        Args:
            strict: Raise ContentError when any document is invalid.

        Returns:
            LoadResult with the valid records and every error.

        Raises:
            ContentError: In strict mode, if any error was found.
        """
        documents: list[Document] = []
        posts: list[Post] = []
        pages: list[Page] = []
        errors: list[MetadataError] = []

        for path in self._loader.iter_files():
            try:
                document = self._builder.read(path)
                documents.append(document)
                record = self._builder.build(document)
            except MetadataError as exc:
                logger.debug("Rejected %s: %s", path, exc.message)
                errors.append(exc)
                continue
            logger.debug("Loaded %s as %s", document.rel_path, record.layout)
            if isinstance(record, Post):
                posts.append(record)
            else:
                pages.append(record)

        duplicate_ids = _duplicates(posts, lambda p: p.identifier, "identifier", "title")
        flagged = {error.source_path for error in duplicate_ids}
        errors.extend(duplicate_ids)
        errors.extend(
            _duplicates(
                [r for r in (*posts, *pages) if r.path not in flagged],
                lambda r: r.url,
                "permalink",
            )
        )
        errors.sort(key=lambda e: str(e.source_path))

        if strict and errors:
            raise ContentError(errors)
        return LoadResult(
            documents=documents,
            posts=PostCollection(posts),
            pages=PageCollection(pages),
            errors=errors,
        )


def _duplicates(records, key, label: str, field_name: str | None = None) -> list[MetadataError]:
    seen: dict[str, Record] = {}
    errors: list[MetadataError] = []
    for record in sorted(records, key=lambda r: str(r.rel_path)):
        value = key(record)
        first = seen.setdefault(value, record)
        if first is not record:
            errors.append(
                MetadataError(
                    record.path,
                    f"duplicate {label} {value!r} (also used by {first.rel_path})",
                    field_name,
                )
            )
    return errors
