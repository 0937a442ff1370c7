"""Front matter codec for Inkstand.

A document starts with a YAML metadata block delimited by ``---`` lines,
followed by the markdown body::

    ---
    layout: post
    title: Hello
    ---
    Body text.

``parse_document`` splits a document into its metadata mapping and body, and
``dump_document`` writes them back. Keys keep their authored order in both
directions, so parsing a dumped document yields the same keys and values.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .schema import MetadataError

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:(?P<block>.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)
FRONTMATTER_MARKER = "---"


class FrontMatterError(MetadataError):
    """The metadata block is missing or is not a YAML mapping."""


def parse_document(text: str, source_path: Path | None = None) -> tuple[dict[str, Any], str]:
    """Split a document into its metadata mapping and body.

    Args:
        text: Raw file content.
        source_path: Path reported in errors.

    Returns:
        Tuple of (metadata dict, body text).

    Raises:
        FrontMatterError: If the block is missing, is not valid YAML or is not
            a mapping.
    """
    path = source_path or Path("<string>")
    match = FRONTMATTER_RE.match(text.lstrip("\ufeff"))
    if not match:
        raise FrontMatterError(path, "missing front matter block")
    block = match.group("block") or ""
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" (line {mark.line + 2})" if mark is not None else ""
        raise FrontMatterError(path, f"invalid YAML in front matter{where}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            path, f"front matter must be a mapping, got {type(data).__name__}"
        )
    bad_keys = [key for key in data if not isinstance(key, str)]
    if bad_keys:
        raise FrontMatterError(path, f"front matter keys must be strings: {bad_keys!r}")
    body = text.lstrip("\ufeff")[match.end() :]
    return data, body


def dump_metadata(metadata: dict[str, Any]) -> str:
    """Serialize a metadata mapping to the text of a front matter block."""
    if not metadata:
        return ""
    return yaml.safe_dump(
        metadata,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=1000,
    )


def dump_document(metadata: dict[str, Any], body: str) -> str:
    """Write a metadata mapping and body back into document text.

    Args:
        metadata: Front matter values in the order they should be written.
        body: Markdown body, written unchanged after the block.

    Returns:
        Complete document text.
    """
    block = dump_metadata(metadata)
    return f"{FRONTMATTER_MARKER}\n{block}{FRONTMATTER_MARKER}\n{body}"
