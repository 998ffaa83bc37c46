"""Date parsing for the two timestamp layouts feeds commonly use."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from feedpull.models import EPOCH

logger = logging.getLogger(__name__)

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Zone names replaced before parsing; EDT is deliberately read as UTC.
_ZONE_ALIASES = ("GMT", "EDT")


def _parse_iso(value: str) -> datetime | None:
    try:
        return datetime.strptime(value, ISO_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def _parse_rfc822(value: str) -> datetime | None:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_iso_date(value: str) -> datetime:
    """Parse ``2006-01-02T15:04:05Z``, falling back to the epoch."""
    parsed = _parse_iso(value.strip())
    if parsed is None:
        logger.debug("Unparseable ISO date %r, using epoch", value)
        return EPOCH
    return parsed


def parse_rss_date(value: str) -> datetime:
    """Parse an RSS ``pubDate`` such as ``Mon, 02 Jan 2006 15:04:05 GMT``.

    Falls back to the ISO layout, then to the epoch.
    """
    text = value
    for alias in _ZONE_ALIASES:
        text = text.replace(alias, "+0000")
    text = text.strip()

    parsed = _parse_rfc822(text) or _parse_iso(text)
    if parsed is None:
        logger.debug("Unparseable pubDate %r, using epoch", value)
        return EPOCH
    return parsed
