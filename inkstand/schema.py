"""Metadata schema for Inkstand.

This module defines the closed set of front matter keys the renderer
understands, and turns raw metadata mappings into clean values for pages and
posts. Anything that does not fit the schema is an authoring mistake and
raises ``MetadataError`` with the offending file and field.

Key objects:
- FIELDS: Recognized keys with their value type and the document kinds they
  apply to.
- MetadataError: Raised for missing fields, wrong types, unknown layouts and
  timestamps without a UTC offset.
- resolve_layout / validate_post / validate_page: Schema checks used by the
  content store.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from typing import Any

from .utils import titleize, unique

LAYOUT_PAGE = "page"
LAYOUT_POST = "post"
LAYOUTS = (LAYOUT_PAGE, LAYOUT_POST)

TIMESTAMP_RE = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
    r"(?:[Tt]|[ \t]+)"
    r"(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2})(?:\.(?P<fraction>\d+))?)?"
    r"[ \t]*(?P<tz>Z|z|[+-]\d{2}(?::?\d{2})?)$"
)


class MetadataError(Exception):
    """Front matter that does not satisfy the schema.

    Attributes:
        source_path: Path to the document with the problem.
        message: Human-readable error message.
        field: Front matter key at fault, if any.
    """

    def __init__(self, source_path: Path, message: str, field: str | None = None):
        self.source_path = source_path
        self.message = f"{field}: {message}" if field else message
        self.field = field
        super().__init__(f"{source_path}: {self.message}")


@dataclass(frozen=True)
class FieldSpec:
    """Description of a recognized front matter key.

    Attributes:
        name: Key as written in the metadata block.
        type_name: Expected value type.
        effect: What the renderer does with the value.
        applies_to: Layouts the key has an effect on.
    """

    name: str
    type_name: str
    effect: str
    applies_to: tuple[str, ...]


FIELDS: dict[str, FieldSpec] = {
    spec.name: spec
    for spec in (
        FieldSpec("layout", "enum{page, post}", "selects rendering template", LAYOUTS),
        FieldSpec("title", "string", "display title / permalink component", LAYOUTS),
        FieldSpec("date", "timestamp+offset", "sort key, permalink component", (LAYOUT_POST,)),
        FieldSpec("categories", "ordered sequence of string", "grouping/navigation", (LAYOUT_POST,)),
        FieldSpec("tags", "set of string", "grouping/navigation", (LAYOUT_POST,)),
        FieldSpec("pin", "boolean", "promotes post above unpinned posts", (LAYOUT_POST,)),
        FieldSpec("author", "string", "attribution override", (LAYOUT_POST,)),
        FieldSpec("icon", "symbolic name", "page navigation icon", (LAYOUT_PAGE,)),
        FieldSpec("order", "integer", "page navigation sort key", (LAYOUT_PAGE,)),
    )
}


def parse_timestamp(value: Any) -> datetime:
    """Parse a front matter date into an offset-aware datetime.

    Accepts datetimes already produced by the YAML loader, ISO-8601 strings
    and the Jekyll ``YYYY-MM-DD HH:MM:SS +ZZZZ`` form.

    Args:
        value: Raw ``date`` value.

    Returns:
        Timezone-aware datetime carrying the authored offset.

    Raises:
        ValueError: If the value is not a timestamp or has no explicit offset.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError(f"timestamp {value.isoformat(' ')} has no UTC offset")
        return value
    if isinstance(value, date):
        raise ValueError(f"{value.isoformat()} has no time and UTC offset")
    if not isinstance(value, str):
        raise ValueError(f"expected a timestamp, got {type(value).__name__}")

    match = TIMESTAMP_RE.match(value.strip())
    if not match:
        raise ValueError(f"cannot parse {value!r} as a timestamp with UTC offset")
    parts = match.groupdict()
    fraction = (parts["fraction"] or "0")[:6].ljust(6, "0")
    tzinfo = _parse_offset(parts["tz"])
    try:
        return datetime(
            int(parts["year"]),
            int(parts["month"]),
            int(parts["day"]),
            int(parts["hour"]),
            int(parts["minute"]),
            int(parts["second"] or 0),
            int(fraction),
            tzinfo=tzinfo,
        )
    except ValueError as exc:
        raise ValueError(f"invalid timestamp {value!r}: {exc}") from exc


def _parse_offset(text: str) -> timezone:
    if text in ("Z", "z"):
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4] or 0)
    if hours > 23 or minutes > 59:
        raise ValueError(f"invalid UTC offset {text}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def resolve_layout(
    metadata: dict[str, Any],
    rel_path: PurePosixPath,
    defaults: dict[str, str],
    source_path: Path,
) -> str:
    """Resolve the layout of a document.

    The explicit ``layout`` key wins; otherwise the default configured for the
    closest enclosing directory applies.

    Args:
        metadata: Raw front matter.
        rel_path: Document path relative to the content directory.
        defaults: Mapping of directory (relative, posix) to layout name.
        source_path: Path reported in errors.

    Returns:
        One of LAYOUTS.

    Raises:
        MetadataError: If no layout can be resolved or it is unknown.
    """
    layout = metadata.get("layout")
    if layout is None:
        for parent in rel_path.parents:
            key = parent.as_posix()
            if key != "." and key in defaults:
                layout = defaults[key]
                break
    if layout is None:
        raise MetadataError(source_path, "missing required field", "layout")
    if layout not in LAYOUTS:
        raise MetadataError(
            source_path,
            f"unknown layout {layout!r} (expected one of: {', '.join(LAYOUTS)})",
            "layout",
        )
    return layout


def validate_post(
    metadata: dict[str, Any], source_path: Path, default_author: str = ""
) -> dict[str, Any]:
    """Check a post's front matter and return its clean values.

    Args:
        metadata: Raw front matter.
        source_path: Path reported in errors.
        default_author: Site-wide author used when none is given.

    Returns:
        Dictionary with title, date, categories, tags, pin and author.

    Raises:
        MetadataError: On the first field that does not fit the schema.
    """
    title = _required_string(metadata, "title", source_path)
    if "date" not in metadata or metadata["date"] is None:
        raise MetadataError(source_path, "missing required field", "date")
    try:
        published = parse_timestamp(metadata["date"])
    except ValueError as exc:
        raise MetadataError(source_path, str(exc), "date") from exc

    pin = metadata.get("pin", False)
    if pin is None:
        pin = False
    if not isinstance(pin, bool):
        raise MetadataError(source_path, f"expected true or false, got {pin!r}", "pin")

    author = metadata.get("author")
    if author is not None and not isinstance(author, str):
        author = str(author)
    author = (author or "").strip() or default_author

    return {
        "title": title,
        "date": published,
        "categories": _string_list(metadata, "categories", source_path),
        "tags": unique(_string_list(metadata, "tags", source_path)),
        "pin": pin,
        "author": author,
    }


def validate_page(metadata: dict[str, Any], source_path: Path) -> dict[str, Any]:
    """Check a page's front matter and return its clean values.

    Args:
        metadata: Raw front matter.
        source_path: Path reported in errors.

    Returns:
        Dictionary with title, icon and order.

    Raises:
        MetadataError: On the first field that does not fit the schema.
    """
    if metadata.get("title") is None:
        title = titleize(source_path.name)
    else:
        title = _required_string(metadata, "title", source_path)

    icon = metadata.get("icon")
    if icon is not None:
        if not isinstance(icon, str) or not icon.strip():
            raise MetadataError(source_path, f"expected a symbolic name, got {icon!r}", "icon")
        icon = icon.strip()

    order = metadata.get("order")
    if order is not None and (isinstance(order, bool) or not isinstance(order, int)):
        raise MetadataError(source_path, f"expected an integer, got {order!r}", "order")

    return {"title": title, "icon": icon, "order": order}


def inapplicable_fields(metadata: dict[str, Any], layout: str) -> list[str]:
    """Return recognized keys that have no effect on the given layout."""
    return [
        key
        for key in metadata
        if key in FIELDS and layout not in FIELDS[key].applies_to
    ]


def _required_string(metadata: dict[str, Any], name: str, source_path: Path) -> str:
    value = metadata.get(name)
    if value is None:
        raise MetadataError(source_path, "missing required field", name)
    if isinstance(value, (dict, list)):
        raise MetadataError(source_path, f"expected a string, got {type(value).__name__}", name)
    text = str(value).strip()
    if not text:
        raise MetadataError(source_path, "must not be empty", name)
    return text


def _string_list(metadata: dict[str, Any], name: str, source_path: Path) -> list[str]:
    value = metadata.get(name)
    if value is None:
        return []
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise MetadataError(
            source_path, f"expected a list of strings, got {type(value).__name__}", name
        )
    result: list[str] = []
    for item in items:
        if item is None or isinstance(item, (dict, list)):
            raise MetadataError(source_path, f"invalid entry {item!r}", name)
        text = str(item).strip()
        if not text:
            raise MetadataError(source_path, "entries must not be empty", name)
        result.append(text)
    return result
