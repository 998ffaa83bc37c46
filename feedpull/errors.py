"""Exception types raised while fetching and parsing feeds."""

from __future__ import annotations

import http.client
from typing import Any, Iterable

# Anything in here raised while opening or reading a stream is a transport failure.
TRANSPORT_EXCEPTIONS = (OSError, http.client.HTTPException)


class FeedError(Exception):
    """Base class for every failure tied to a single feed URL."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url


class TransportError(FeedError):
    """Raised when a stream cannot be opened or read."""


class MalformedDocumentError(FeedError):
    """Raised when a stream was read but its markup cannot be tokenized.

    ``entries`` holds whatever was finalized before the bad markup.
    """

    def __init__(self, url: str, message: str, entries: Iterable[Any] = ()) -> None:
        super().__init__(url, message)
        self.entries = list(entries)
