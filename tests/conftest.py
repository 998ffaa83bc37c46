"""Shared fixtures: in-memory feeds and openers."""

from __future__ import annotations

import io
import threading
import time
from typing import Callable, Mapping

import pytest

from feedpull.errors import TransportError


def rss_document(count: int, title_prefix: str = "Item", host: str = "example.com") -> bytes:
    items = "".join(
        f"<item><title>{title_prefix} {n}</title>"
        f"<link>https://{host}/posts/{n}</link>"
        f"<pubDate>Mon, 02 Jan 2006 15:04:{n % 60:02d} GMT</pubDate></item>"
        for n in range(count)
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f"<rss version=\"2.0\"><channel><title>{host} feed</title>{items}</channel></rss>"
    ).encode("utf-8")


class FakeOpener:
    """Serves byte documents by URL; anything unknown raises TransportError."""

    def __init__(self, documents: Mapping[str, bytes | Exception], delay: Mapping[str, float] | None = None):
        self.documents = dict(documents)
        self.delay = dict(delay or {})
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, url: str) -> io.BytesIO:
        with self._lock:
            self.calls.append(url)
        if url in self.delay:
            time.sleep(self.delay[url])
        document = self.documents.get(url)
        if document is None:
            raise TransportError(url, "not found")
        if isinstance(document, Exception):
            raise document
        return io.BytesIO(document)


@pytest.fixture
def make_rss() -> Callable[..., bytes]:
    return rss_document


@pytest.fixture
def make_opener() -> Callable[..., FakeOpener]:
    return FakeOpener


@pytest.fixture
def rss_feed() -> bytes:
    return b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:webfeeds="http://webfeeds.org/rss/1.0">
  <channel>
    <title>Example News</title>
    <link>https://example.com</link>
    <image>
      <url>https://example.com/logo.png</url>
      <title>Logo title</title>
    </image>
    <webfeeds:accentColor>ff6600</webfeeds:accentColor>
    <item>
      <title>First &amp;#8217;post</title>
      <link>https://example.com/first</link>
      <pubDate>Mon, 02 Jan 2006 15:04:05 GMT</pubDate>
      <description>&lt;p&gt;&lt;img class="x" src="https://example.com/a.jpg"/&gt;&lt;/p&gt;</description>
    </item>
    <item>
      <title>Permalink only</title>
      <guid isPermaLink="true">https://example.com/second</guid>
      <pubDate>not a date</pubDate>
      <media:content url="https://example.com/b.png"/>
    </item>
    <item>
      <title>Not a permalink</title>
      <guid isPermaLink="false">tag:example.com,2006:3</guid>
    </item>
  </channel>
</rss>
"""


@pytest.fixture
def atom_feed() -> bytes:
    return b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Example</title>
  <icon>https://example.org/favicon.ico</icon>
  <updated>2024-03-01T00:00:00Z</updated>
  <entry>
    <title>Atom one</title>
    <id>https://example.org/one</id>
    <published>2024-03-01T10:20:30Z</published>
    <updated>2024-03-02T10:20:30Z</updated>
    <summary type="html">&lt;img src="https://example.org/one.png"&gt;</summary>
  </entry>
  <entry>
    <title>Atom two</title>
    <id>https://example.org/two</id>
    <updated>2024-03-02T10:20:30+02:00</updated>
  </entry>
</feed>
"""
