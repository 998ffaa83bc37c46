"""Concurrent RSS/Atom loading with per-source graceful degradation."""

from feedpull.errors import FeedError, MalformedDocumentError, TransportError
from feedpull.models import Entry, Source
from feedpull.orchestrator import LoadResult, load, load_in_background

__all__ = [
    "Entry",
    "FeedError",
    "LoadResult",
    "MalformedDocumentError",
    "Source",
    "TransportError",
    "load",
    "load_in_background",
]
