"""Feed sources and the entries parsed out of them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

OPAQUE_ALPHA = 0xFF000000


@dataclass(eq=False)
class Source:
    """One requested feed origin.

    Only the parser that owns the source mutates it; once a load returns,
    sources are shared read-only between their entries.
    """

    display_name: str
    canonical_url: str
    domain: str
    icon_url: str | None = None
    accent_color: int | None = None
    error: Exception | None = field(default=None, repr=False)


@dataclass(frozen=True)
class Entry:
    """A single item of a feed.

    Two entries are equal when their title and link match, whatever the
    source, image or date. Comparisons order them by publication time.

    ``source`` is always set on entries built by the parser; it is optional
    only so callers can build entries by hand.
    """

    title: str
    link: str
    image: str | None = field(default=None, compare=False)
    published_at: datetime = field(default=EPOCH, compare=False)
    source: Source | None = field(default=None, compare=False, repr=False)

    def __lt__(self, other: Entry) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self.published_at < other.published_at

    def __le__(self, other: Entry) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self.published_at <= other.published_at

    def __gt__(self, other: Entry) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self.published_at > other.published_at

    def __ge__(self, other: Entry) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self.published_at >= other.published_at
