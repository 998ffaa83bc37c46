"""Opening feed streams and walking the URL suffix fallbacks."""

from __future__ import annotations

import dataclasses
import logging
import threading
import urllib.request
from dataclasses import dataclass, field
from typing import IO, Callable, Sequence

from feedpull.errors import TRANSPORT_EXCEPTIONS, FeedError, MalformedDocumentError, TransportError
from feedpull.models import Entry, Source
from feedpull.parser import EntryFilter, accept_all, parse_feed

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 20
USER_AGENT = "feedpull/0.1"

COMMON_URL_SUFFIXES = (
    "",
    "/feed",
    "/feed.xml",
    "/rss",
    "/rss.xml",
    "/atom",
    "/atom.xml",
)

Opener = Callable[[str], IO[bytes]]


def open_url(url: str, timeout: float = DEFAULT_TIMEOUT, user_agent: str = USER_AGENT) -> IO[bytes]:
    request = urllib.request.Request(url, headers={"User-Agent": user_agent})
    return urllib.request.urlopen(request, timeout=timeout)


@dataclass
class FetchResult:
    """Outcome of one source: its entries, or the error that ended it.

    A malformed document yields both: the entries parsed before the bad markup
    and the error.
    """

    source: Source
    entries: list[Entry] = field(default_factory=list)
    error: FeedError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _open(opener: Opener, url: str) -> IO[bytes]:
    try:
        return opener(url)
    except TransportError:
        raise
    except TRANSPORT_EXCEPTIONS as exc:
        raise TransportError(url, f"open failed: {exc}") from exc


def _attempt(
    opener: Opener,
    source: Source,
    entry_filter: EntryFilter,
    max_items: int,
    cancelled: threading.Event | None,
) -> list[Entry]:
    stream = _open(opener, source.canonical_url)
    try:
        return parse_feed(stream, source, entry_filter, max_items, cancelled)
    finally:
        close = getattr(stream, "close", None)
        if close is not None:
            try:
                close()
            except TRANSPORT_EXCEPTIONS:
                logger.debug("Error closing stream for %s", source.canonical_url, exc_info=True)


def fetch_source(
    source: Source,
    opener: Opener = open_url,
    entry_filter: EntryFilter = accept_all,
    max_items: int = 0,
    suffixes: Sequence[str] = COMMON_URL_SUFFIXES,
    cancelled: threading.Event | None = None,
) -> FetchResult:
    """Try ``source`` with each suffix until one stream parses.

    Transport failures move on to the next suffix. A malformed document ends
    the attempt right away. On success the returned source's canonical URL
    includes the suffix that worked; ``source`` itself is left untouched.
    """
    last_error: FeedError | None = None
    for suffix in suffixes:
        if cancelled is not None and cancelled.is_set():
            break
        candidate = dataclasses.replace(source, canonical_url=source.canonical_url + suffix)
        logger.debug("Trying %s", candidate.canonical_url)
        try:
            entries = _attempt(opener, candidate, entry_filter, max_items, cancelled)
        except TransportError as exc:
            logger.debug("Transport error for %s: %s", candidate.canonical_url, exc)
            last_error = exc
            continue
        except MalformedDocumentError as exc:
            logger.warning("Malformed feed at %s: %s", candidate.canonical_url, exc)
            candidate.error = exc
            return FetchResult(candidate, list(exc.entries), exc)

        logger.info("Fetched %d entries from %s", len(entries), candidate.canonical_url)
        return FetchResult(candidate, entries)

    if last_error is None:
        last_error = TransportError(source.canonical_url, "cancelled before any suffix was tried")
    logger.warning("Giving up on %s: %s", source.canonical_url, last_error)
    failed = dataclasses.replace(source, error=last_error)
    return FetchResult(failed, error=last_error)
