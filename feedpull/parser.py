"""Streaming RSS/Atom parser.

The feed is fed to an incremental SAX parser chunk by chunk, so arbitrarily
large documents are never held in memory. Element names are matched by their
raw qualified name (``media:content``, ``webfeeds:icon``), lower-cased, with no
namespace resolution.

Which field an element fills depends on the grammar of the block currently
open: ``<item>`` selects the RSS table, ``<entry>`` the Atom table, and
anything outside both is channel metadata written to the ``Source``.
"""

from __future__ import annotations

import codecs
import enum
import logging
import re
import threading
import xml.sax
import xml.sax.handler
import xml.sax.xmlreader
from dataclasses import dataclass
from datetime import datetime
from typing import IO, Callable, NamedTuple

from feedpull.dates import parse_iso_date, parse_rss_date
from feedpull.errors import TRANSPORT_EXCEPTIONS, MalformedDocumentError, TransportError
from feedpull.extract import find_img_src, unescape
from feedpull.models import EPOCH, OPAQUE_ALPHA, Entry, Source

logger = logging.getLogger(__name__)

CHUNK_SIZE = 16 * 1024

EntryFilter = Callable[[str, str, datetime], bool]
Attrs = xml.sax.xmlreader.AttributesImpl

_IMAGE_SUFFIXES = (".jpg", ".png", ".svg", ".jpeg")

_XML_ENCODING_RE = re.compile(rb"^(?:\xef\xbb\xbf)?\s*<\?xml[^>]*?\bencoding\s*=\s*[\"']([A-Za-z0-9._:-]+)[\"']")
_DECLARED_ENCODING_RE = re.compile(r"^(\ufeff?\s*<\?xml[^>]*?\bencoding\s*=\s*[\"'])[^\"']+([\"'])")

# Codecs expat reads by itself; anything else is transcoded to UTF-8 first.
_EXPAT_ENCODINGS = {"utf-8", "utf-16", "utf-16-le", "utf-16-be", "iso8859-1", "ascii"}


def accept_all(url: str, title: str, published_at: datetime) -> bool:
    return True


class ItemKind(enum.Enum):
    NONE = "none"
    RSS = "rss"
    ATOM = "atom"


@dataclass
class ItemScratch:
    """Fields collected for the item or entry currently open."""

    title: str | None = None
    link: str | None = None
    image: str | None = None
    published_at: datetime | None = None
    guid: str | None = None
    is_permalink: bool = False

    def resolved_link(self) -> str | None:
        if self.link is None and self.is_permalink:
            return self.guid
        return self.link


class FieldRule(NamedTuple):
    """Setters for one element: ``start`` sees attributes, ``text`` sees content."""

    start: Callable[[ItemScratch, Attrs], None] | None = None
    text: Callable[[ItemScratch, str], None] | None = None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _set_title(item: ItemScratch, text: str) -> None:
    item.title = text


def _set_link_once(item: ItemScratch, text: str) -> None:
    if item.link is None:
        item.link = _clean(text)


def _set_guid(item: ItemScratch, text: str) -> None:
    item.guid = _clean(text)


def _set_permalink(item: ItemScratch, attrs: Attrs) -> None:
    item.is_permalink = (attrs.get("isPermaLink") or "").lower() == "true"


def _set_rss_date(item: ItemScratch, text: str) -> None:
    item.published_at = parse_rss_date(text)


def _set_atom_date(item: ItemScratch, text: str) -> None:
    if item.published_at is None:
        item.published_at = parse_iso_date(text)


def _set_image(item: ItemScratch, value: str | None) -> None:
    if item.image is None and value:
        item.image = value


def _image_from_html(item: ItemScratch, text: str) -> None:
    if item.image is None:
        _set_image(item, find_img_src(text))


def _image_from_text(item: ItemScratch, text: str) -> None:
    _set_image(item, _clean(text))


def _image_from_media_content(item: ItemScratch, attrs: Attrs) -> None:
    url = attrs.get("url")
    if not url:
        return
    if attrs.get("medium") == "image" or url.endswith(_IMAGE_SUFFIXES):
        _set_image(item, url)


def _image_from_url_attr(item: ItemScratch, attrs: Attrs) -> None:
    _set_image(item, attrs.get("url"))


def _image_from_href_attr(item: ItemScratch, attrs: Attrs) -> None:
    _set_image(item, attrs.get("href"))


RSS_FIELDS: dict[str, FieldRule] = {
    "title": FieldRule(text=_set_title),
    "guid": FieldRule(start=_set_permalink, text=_set_guid),
    "link": FieldRule(text=_set_link_once),
    "pubdate": FieldRule(text=_set_rss_date),
    "description": FieldRule(text=_image_from_html),
    "content:encoded": FieldRule(text=_image_from_html),
    "image": FieldRule(text=_image_from_text),
    "media:content": FieldRule(start=_image_from_media_content),
    "media:thumbnail": FieldRule(start=_image_from_url_attr),
    "enclosure": FieldRule(start=_image_from_url_attr),
    "itunes:image": FieldRule(start=_image_from_href_attr),
}

ATOM_FIELDS: dict[str, FieldRule] = {
    "title": FieldRule(text=_set_title),
    "id": FieldRule(text=_set_link_once),
    "published": FieldRule(text=_set_atom_date),
    "updated": FieldRule(text=_set_atom_date),
    "summary": FieldRule(text=_image_from_html),
    "content": FieldRule(text=_image_from_html),
}

_ITEM_TABLES = {ItemKind.RSS: RSS_FIELDS, ItemKind.ATOM: ATOM_FIELDS}
_BLOCK_TAGS = {"item": ItemKind.RSS, "entry": ItemKind.ATOM}


def _set_source_name(source: Source, text: str) -> None:
    if text.strip():
        source.display_name = text


def _set_source_icon(source: Source, text: str) -> None:
    if source.icon_url is None and text.strip():
        source.icon_url = text.strip()


def _set_source_color(source: Source, text: str) -> None:
    if not text.strip():
        return
    try:
        source.accent_color = int(text.strip(), 16) | OPAQUE_ALPHA
    except ValueError:
        logger.debug("Ignoring accent color %r for %s", text, source.canonical_url)


CHANNEL_FIELDS: dict[str, Callable[[Source, str], None]] = {
    "title": _set_source_name,
    "icon": _set_source_icon,
    "webfeeds:icon": _set_source_icon,
    "webfeeds:accentcolor": _set_source_color,
}


class _StopParsing(Exception):
    """Raised from inside the SAX callbacks once enough entries were kept."""


class _FilterFailed(Exception):
    """Carries an exception raised by the entry filter out through expat."""

    def __init__(self, error: Exception) -> None:
        super().__init__(str(error))
        self.error = error


class FeedParser(xml.sax.handler.ContentHandler):
    """SAX handler holding the parse state for one feed document."""

    def __init__(
        self,
        source: Source,
        entry_filter: EntryFilter = accept_all,
        max_items: int = 0,
    ) -> None:
        super().__init__()
        self.source = source
        self.entry_filter = entry_filter
        self.max_items = max_items
        self.entries: list[Entry] = []
        self.kind = ItemKind.NONE
        self.item = ItemScratch()
        self._text: list[str] = []
        # Channel-level <image> block: only its first <url> child is used.
        self._in_channel_image = False
        self._channel_image_seen_url = False

    def startElement(self, name: str, attrs: Attrs) -> None:
        self._text = []
        tag = name.lower()

        block = _BLOCK_TAGS.get(tag)
        if block is not None:
            self.kind = block
            self.item = ItemScratch()
            return

        if self.kind is ItemKind.NONE:
            if tag == "image" and not self._in_channel_image:
                self._in_channel_image = True
                self._channel_image_seen_url = False
            return

        rule = _ITEM_TABLES[self.kind].get(tag)
        if rule is not None and rule.start is not None:
            rule.start(self.item, attrs)

    def characters(self, content: str) -> None:
        self._text.append(content)

    def endElement(self, name: str) -> None:
        text = "".join(self._text)
        self._text = []
        tag = name.lower()

        if tag in _BLOCK_TAGS:
            self._finish_item()
            return

        if self.kind is ItemKind.NONE:
            self._channel_end(tag, text)
            return

        rule = _ITEM_TABLES[self.kind].get(tag)
        if rule is not None and rule.text is not None:
            rule.text(self.item, text)

    def _channel_end(self, tag: str, text: str) -> None:
        if self._in_channel_image:
            if tag == "image":
                self._in_channel_image = False
            elif tag == "url" and not self._channel_image_seen_url:
                self._channel_image_seen_url = True
                _set_source_icon(self.source, text)
            return

        setter = CHANNEL_FIELDS.get(tag)
        if setter is not None:
            setter(self.source, text)

    def _finish_item(self) -> None:
        item = self.item
        self.kind = ItemKind.NONE
        self.item = ItemScratch()

        link = item.resolved_link()
        if item.title is None or link is None:
            return
        published_at = item.published_at or EPOCH
        try:
            keep = self.entry_filter(link, item.title, published_at)
        except Exception as exc:
            raise _FilterFailed(exc) from exc
        if not keep:
            return

        self.entries.append(
            Entry(
                title=unescape(item.title),
                link=link,
                image=item.image,
                published_at=published_at,
                source=self.source,
            )
        )
        if self.max_items and len(self.entries) >= self.max_items:
            raise _StopParsing()


def _new_sax_parser(handler: FeedParser) -> xml.sax.xmlreader.IncrementalParser:
    reader = xml.sax.make_parser()
    reader.setFeature(xml.sax.handler.feature_namespaces, False)
    reader.setFeature(xml.sax.handler.feature_external_ges, False)
    reader.setContentHandler(handler)
    return reader


class _Utf8Transcoder:
    """Decodes a document in its declared codec and re-encodes it as UTF-8.

    The encoding in the XML declaration is rewritten to match.
    """

    def __init__(self, encoding: str) -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)()
        self._rewrite_declaration = True

    def convert(self, chunk: bytes, final: bool = False) -> bytes:
        text = self._decoder.decode(chunk, final)
        if self._rewrite_declaration and text:
            text = _DECLARED_ENCODING_RE.sub(r"\1utf-8\2", text, count=1)
            self._rewrite_declaration = False
        return text.encode("utf-8")


def _transcoder_for(head: bytes) -> _Utf8Transcoder | None:
    match = _XML_ENCODING_RE.match(head)
    if match is None:
        return None
    try:
        codec = codecs.lookup(match.group(1).decode("ascii"))
    except LookupError:
        return None
    if codec.name in _EXPAT_ENCODINGS:
        return None
    return _Utf8Transcoder(codec.name)


def parse_feed(
    stream: IO[bytes],
    source: Source,
    entry_filter: EntryFilter = accept_all,
    max_items: int = 0,
    cancelled: threading.Event | None = None,
) -> list[Entry]:
    """Read ``stream`` to the end and return the entries it holds.

    Channel metadata found along the way is written onto ``source``. Parsing
    stops early, without error, once ``max_items`` entries were kept (0 means
    no limit) or when ``cancelled`` gets set.

    Raises ``TransportError`` if reading fails and ``MalformedDocumentError``
    if the markup cannot be tokenized. Exceptions from ``entry_filter``
    propagate unchanged.
    """
    url = source.canonical_url
    handler = FeedParser(source, entry_filter, max_items)
    reader = _new_sax_parser(handler)
    transcoder: _Utf8Transcoder | None = None
    received = False

    try:
        while True:
            if cancelled is not None and cancelled.is_set():
                logger.debug("Parsing of %s abandoned", url)
                return handler.entries
            try:
                chunk = stream.read(CHUNK_SIZE)
            except TRANSPORT_EXCEPTIONS as exc:
                raise TransportError(url, f"read failed: {exc}") from exc
            if not chunk:
                break
            if not received and isinstance(chunk, bytes):
                transcoder = _transcoder_for(chunk)
                if transcoder is not None:
                    logger.debug("Transcoding %s to UTF-8", url)
            received = True
            reader.feed(transcoder.convert(chunk) if transcoder else chunk)
        if not received:
            raise MalformedDocumentError(url, "empty document")
        if transcoder is not None:
            reader.feed(transcoder.convert(b"", final=True))
        reader.close()
    except _StopParsing:
        logger.debug("Stopped %s after %d entries", url, len(handler.entries))
    except _FilterFailed as exc:
        raise exc.error
    except (xml.sax.SAXException, ValueError, LookupError) as exc:
        # pyexpat reports unsupported encodings and bad bytes as ValueError.
        raise MalformedDocumentError(url, str(exc), handler.entries) from exc

    return handler.entries
