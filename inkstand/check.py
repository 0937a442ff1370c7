"""Content tree validation for Inkstand.

``check_content`` loads a whole content tree and reports every problem in one
pass. Errors are documents the renderer must not publish; warnings are legal
but probably unintended (colliding navigation orders, keys that have no effect
on the document's layout, posts dated in the future).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .content import ContentStore, LoadResult
from .schema import MetadataError, inapplicable_fields


@dataclass(frozen=True)
class CheckWarning:
    """A problem that does not stop publishing.

    Attributes:
        source_path: Path to the document concerned.
        message: Human-readable message.
    """

    source_path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.source_path}: {self.message}"


@dataclass
class CheckReport:
    """Outcome of checking a content tree.

    Attributes:
        result: The load result the checks ran on.
        errors: Documents that fail the schema.
        warnings: Suspicious but valid content.
    """

    result: LoadResult
    errors: list[MetadataError] = field(default_factory=list)
    warnings: list[CheckWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def failed(self, strict: bool = False) -> bool:
        """Return True if the check should fail the build."""
        return bool(self.errors) or (strict and bool(self.warnings))


def check_content(
    content_dir: Path,
    config: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> CheckReport:
    """Validate every document under a content directory.

    Args:
        content_dir: Root directory of the content tree.
        config: Project configuration.
        now: Reference time for future-date warnings.

    Returns:
        CheckReport with every error and warning found.
    """
    result = ContentStore(content_dir, config).load()
    report = CheckReport(result=result, errors=list(result.errors))
    reference = now or datetime.now(timezone.utc)

    for order, pages in result.pages.order_collisions().items():
        names = ", ".join(str(p.rel_path) for p in pages)
        for page in pages[1:]:
            report.warnings.append(
                CheckWarning(page.path, f"order {order} is shared by {names}; ordered by path")
            )

    for record in [*result.posts, *result.pages]:
        for key in inapplicable_fields(record.metadata, record.layout):
            report.warnings.append(
                CheckWarning(record.path, f"{key} has no effect on a {record.layout}")
            )

    for post in result.posts:
        if post.date > reference:
            report.warnings.append(
                CheckWarning(post.path, f"date {post.date.isoformat()} is in the future")
            )

    report.warnings.sort(key=lambda w: (str(w.source_path), w.message))
    return report
