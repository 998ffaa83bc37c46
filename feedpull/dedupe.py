"""Caller-side helpers for merged entry lists."""

from __future__ import annotations

from typing import Iterable

from feedpull.models import Entry


def dedupe_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Drop entries whose title and link were already seen, keeping order."""
    seen: set[Entry] = set()
    unique: list[Entry] = []
    for entry in entries:
        if entry in seen:
            continue
        seen.add(entry)
        unique.append(entry)
    return unique


def sort_entries(entries: Iterable[Entry], newest_first: bool = False) -> list[Entry]:
    return sorted(entries, key=lambda entry: entry.published_at, reverse=newest_first)
