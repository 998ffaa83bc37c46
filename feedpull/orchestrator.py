"""Concurrent loading of many feeds under one shared deadline."""

from __future__ import annotations

import concurrent.futures
import dataclasses
import logging
import threading
import time
from typing import Callable, Iterable, NamedTuple, Sequence

from feedpull.fetch import COMMON_URL_SUFFIXES, FetchResult, Opener, fetch_source, open_url
from feedpull.models import Entry, Source
from feedpull.parser import EntryFilter, accept_all
from feedpull.sources import new_source

logger = logging.getLogger(__name__)

TOTAL_BUDGET_SECONDS = 60.0


class LoadResult(NamedTuple):
    errored: list[Source]
    entries: list[Entry]


def _resolve_all(urls: Iterable[str]) -> list[Source]:
    sources: list[Source] = []
    for raw in urls:
        if not raw or not raw.strip():
            continue
        sources.append(new_source(raw.strip()))
    return sources


def _start_worker(
    source: Source,
    opener: Opener,
    entry_filter: EntryFilter,
    max_items: int,
    suffixes: Sequence[str],
    cancelled: threading.Event,
) -> concurrent.futures.Future[FetchResult]:
    """Fetch ``source`` on a daemon thread so a stuck read never holds the process open."""
    future: concurrent.futures.Future[FetchResult] = concurrent.futures.Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fetch_source(source, opener, entry_filter, max_items, suffixes, cancelled)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)

    thread = threading.Thread(target=run, name=f"feedpull-{source.display_name}", daemon=True)
    thread.start()
    return future


def load(
    urls: Iterable[str],
    max_items_per_url: int = 0,
    entry_filter: EntryFilter = accept_all,
    opener: Opener = open_url,
    budget: float = TOTAL_BUDGET_SECONDS,
    suffixes: Sequence[str] = COMMON_URL_SUFFIXES,
) -> LoadResult:
    """Load every feed in ``urls`` concurrently.

    Each source gets its own daemon worker thread. All of them share one
    deadline of ``budget`` seconds counted from launch; sources still loading
    when it passes are left out of the result entirely and their workers are told to
    stop. Entries come back unsorted and may hold duplicates across sources.

    Returns the sources that failed and the entries of those that did not.
    A source with a malformed document appears in both.
    """
    sources = _resolve_all(urls)
    if not sources:
        return LoadResult([], [])

    cancelled = threading.Event()
    futures = [
        (source, _start_worker(source, opener, entry_filter, max_items_per_url, suffixes, cancelled))
        for source in sources
    ]
    started = time.monotonic()

    errored: list[Source] = []
    entries: list[Entry] = []
    try:
        for source, future in futures:
            remaining = max(budget - (time.monotonic() - started), 0.0)
            try:
                result = future.result(timeout=remaining)
            except concurrent.futures.TimeoutError:
                logger.warning("Still loading %s at the deadline, leaving it out", source.canonical_url)
                continue
            except Exception as exc:
                logger.exception("Loading %s failed", source.canonical_url)
                errored.append(dataclasses.replace(source, error=exc))
                continue

            entries.extend(result.entries)
            if not result.ok:
                errored.append(result.source)
    finally:
        cancelled.set()

    logger.info(
        "Loaded %d entries from %d/%d sources",
        len(entries),
        len(sources) - len(errored),
        len(sources),
    )
    return LoadResult(errored, entries)


def load_in_background(
    urls: Iterable[str],
    on_finished: Callable[[list[Source], list[Entry]], None],
    **kwargs,
) -> threading.Thread:
    """Run ``load`` on a daemon thread and hand the result to ``on_finished``."""
    pending = list(urls)

    def run() -> None:
        errored, entries = load(pending, **kwargs)
        on_finished(errored, entries)

    thread = threading.Thread(target=run, name="feedpull-loader", daemon=True)
    thread.start()
    return thread
