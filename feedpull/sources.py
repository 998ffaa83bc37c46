"""Turn raw user input into a canonical feed URL."""

from __future__ import annotations

from typing import NamedTuple

from feedpull.models import Source

_SCHEMES = ("http://", "https://")


class ResolvedSource(NamedTuple):
    canonical_url: str
    domain: str
    display_name: str


def _strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def resolve_source(raw: str) -> ResolvedSource:
    url = raw[:-1] if raw.endswith("/") else raw
    if url.startswith(_SCHEMES):
        slash = url.find("/", 8)
        domain = url[:slash] if slash != -1 else url
        host = domain.split("://", 1)[1]
        return ResolvedSource(url, domain, _strip_www(host))

    slash = url.find("/")
    host = url[:slash] if slash != -1 else url
    return ResolvedSource(f"https://{url}", f"https://{host}", _strip_www(host))


def new_source(raw: str) -> Source:
    canonical_url, domain, display_name = resolve_source(raw)
    return Source(display_name=display_name, canonical_url=canonical_url, domain=domain)
