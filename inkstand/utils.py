"""Utility functions for Inkstand.

This module contains small helpers shared across the content store, the schema
and the CLI. These include slug and title derivation, path classification and
date prefix handling for file names.

Key functions:
    slugify: Convert titles and file names to URL slugs.
    titleize: Convert filenames to human-readable titles.
    strip_date_prefix: Drop a YYYY-MM-DD- prefix from a filename stem.
    is_markdown: Check if a path is a Markdown file.
    is_hidden_path: Check if a path contains dot-prefixed components.
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import Path


def strip_date_prefix(name: str) -> str:
    """Drop a leading YYYY-MM-DD- prefix from a filename stem.

    Args:
        name: Filename stem.

    Returns:
        The stem without its date prefix, or unchanged if there is none.
    """
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return "-".join(parts[3:])
    return name


def slugify(name: str) -> str:
    """Convert a title or filename stem to a slug, dropping any date prefix.

    Accented characters are folded to ASCII before non-alphanumeric runs are
    collapsed into single hyphens.

    Args:
        name: Title or filename stem.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("Mastering Go Performance: pprof & Beyond")
        'mastering-go-performance-pprof-beyond'

        >>> slugify("2024-01-15-hello-world")
        'hello-world'
    """
    cleaned = strip_date_prefix(name)
    cleaned = unicodedata.normalize("NFKD", cleaned)
    cleaned = cleaned.encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'

        >>> titleize("about.md")
        'About'
    """
    base = strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md or .markdown extension (case-insensitive).
    """
    return path.suffix.lower() in (".md", ".markdown")


def is_hidden_path(path: Path) -> bool:
    """Check if a path has a component starting with a dot.

    Args:
        path: Relative path to check.

    Returns:
        True if any path component is hidden.
    """
    return any(part.startswith(".") for part in path.parts)


def unique(items) -> list:
    """Return items in first-seen order with duplicates removed."""
    seen: list = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen
