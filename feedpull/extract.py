"""Lightweight text helpers for feed titles and embedded HTML."""

from __future__ import annotations

import re

_NUMERIC_REF_RE = re.compile(r"&#(\d+);")


def _decode_ref(match: re.Match[str]) -> str:
    try:
        return chr(int(match.group(1)))
    except (OverflowError, ValueError):
        return match.group(0)


def unescape(title: str) -> str:
    """Decode decimal character references such as ``&#8217;``.

    Named references (``&amp;``) and hex or unterminated references are left
    as they are.
    """
    if "&#" not in title:
        return title
    return _NUMERIC_REF_RE.sub(_decode_ref, title)


def find_img_src(html_content: str) -> str | None:
    """Best-effort lookup of the first ``src="..."`` after an ``img`` token.

    This is a substring heuristic, not an HTML parse: the ``img`` marker may
    match inside ordinary words and the attribute must be double quoted.
    """
    if not html_content:
        return None
    marker = html_content.find("img")
    start = html_content.find('src="', max(marker, 0))
    if start == -1:
        return None
    start += len('src="')
    end = html_content.find('"', start)
    if end == -1:
        return None
    return html_content[start:end]
