from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .content import Page, Post


class PostCollection(Sequence["Post"]):
    """Lightweight helper for working with lists of Posts."""

    def __init__(self, posts: Iterable[Post]):
        self._posts = list(posts)
        # Listing order is asked for repeatedly by groups and the CLI
        self._listing_cache: PostCollection | None = None

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        return self._posts[item]

    def in_category(self, name: str) -> PostCollection:
        return PostCollection(p for p in self._posts if name in p.categories)

    def with_tag(self, tag: str) -> PostCollection:
        return PostCollection(p for p in self._posts if tag in p.tags)

    def pinned(self) -> PostCollection:
        return PostCollection(p for p in self._posts if p.pin)

    def listing(self) -> PostCollection:
        """Sort posts for the listing page.

        Sorting order:
        1. Pinned posts before unpinned posts, whatever their dates
        2. Date: newest first, compared as instants across UTC offsets
        3. Path: alphabetically, when two posts share the same instant

        Returns:
            A new PostCollection in listing order.
        """
        if self._listing_cache is None:
            by_path = sorted(self._posts, key=lambda p: str(p.rel_path))
            by_date = sorted(by_path, key=lambda p: p.date, reverse=True)
            ordered = sorted(by_date, key=lambda p: not p.pin)
            self._listing_cache = PostCollection(ordered)
            self._listing_cache._listing_cache = self._listing_cache
        return self._listing_cache

    def latest(self, count: int = 5) -> PostCollection:
        return PostCollection(self.listing()[:count])

    def categories(self) -> GroupIndex:
        """Group posts by category, each group in listing order."""
        groups: dict[str, list[Post]] = {}
        for post in self.listing():
            for category in post.categories:
                groups.setdefault(category, []).append(post)
        return GroupIndex(groups)

    def tags(self) -> GroupIndex:
        """Group posts by tag, each group in listing order."""
        groups: dict[str, list[Post]] = {}
        for post in self.listing():
            for tag in post.tags:
                groups.setdefault(tag, []).append(post)
        return GroupIndex(groups)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"


class PageCollection(Sequence["Page"]):
    """Lightweight helper for working with lists of Pages."""

    def __init__(self, pages: Iterable[Page]):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        return self._pages[item]

    def navigation(self) -> PageCollection:
        """Sort pages for site navigation.

        Pages with an ``order`` come first, lowest order first. Equal orders
        are broken by path, and pages without an order follow by path, so
        every page gets a distinct position.

        Returns:
            A new PageCollection in navigation order.
        """

        def sort_key(p: Page):
            return (p.order is None, p.order or 0, str(p.rel_path))

        return PageCollection(sorted(self._pages, key=sort_key))

    def order_collisions(self) -> dict[int, PageCollection]:
        """Return pages that share an ``order`` value, keyed by that value.

        Each group is in navigation order, which is how the tie is resolved.
        """
        groups: dict[int, list[Page]] = {}
        for page in self.navigation():
            if page.order is not None:
                groups.setdefault(page.order, []).append(page)
        return {
            order: PageCollection(pages)
            for order, pages in groups.items()
            if len(pages) > 1
        }

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"


class GroupIndex(Mapping[str, PostCollection]):
    """Mapping of category or tag name to PostCollection, sorted by name."""

    def __init__(self, mapping: dict[str, Iterable[Post]]):
        self._mapping = {
            k: PostCollection(mapping[k]) for k in sorted(mapping, key=str.casefold)
        }

    def __getitem__(self, key: str) -> PostCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def counts(self) -> dict[str, int]:
        return {name: len(posts) for name, posts in self._mapping.items()}

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"GroupIndex({len(self._mapping)} groups)"
