"""Classify, parse and normalize RSS/Atom payloads."""

from __future__ import annotations

import calendar
import logging
import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any

import feedparser

from local_feed.errors import ParseError, ShapeError
from local_feed.models import NewsItem

logger = logging.getLogger(__name__)

SHAPE_WINDOW = 400
DEFAULT_SOURCE = "뉴스"

_FEED_MARKERS = ("<rss", "<feed", "<?xml", "<rdf:rdf")
_HTML_MARKERS = ("<!doctype html", "<html", "<head", "<body")

_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"</?[^>]+>")
_WS_RE = re.compile(r"\s+")
_IMG_SRC_RE = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)


class PayloadShape(Enum):
    """What a fetched body looks like from its first few hundred characters."""

    FEED = "feed"
    HTML = "html"
    EMPTY = "empty"
    UNKNOWN = "unknown"


def classify_payload(text: str) -> PayloadShape:
    """Classify a body by inspecting its first ``SHAPE_WINDOW`` characters.

    Blocked or redirected feeds usually come back as HTML pages, which a
    lenient feed parser would happily turn into garbage entries.
    """
    head = text[:SHAPE_WINDOW].lower()
    if not head.strip():
        return PayloadShape.EMPTY
    if any(marker in head for marker in _FEED_MARKERS):
        return PayloadShape.FEED
    if any(marker in head for marker in _HTML_MARKERS):
        return PayloadShape.HTML
    return PayloadShape.UNKNOWN


def ensure_feed_shape(text: str) -> None:
    """Raise ShapeError unless ``text`` looks like RSS/Atom XML."""
    shape = classify_payload(text)
    if shape is not PayloadShape.FEED:
        raise ShapeError(f"Not an RSS/Atom XML (looks like {shape.value})")


def strip_html(html: str | None) -> str:
    """Drop script/style blocks and tags, collapse whitespace."""
    if not html:
        return ""
    text = _SCRIPT_RE.sub("", str(html))
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    return _WS_RE.sub(" ", text).strip()


def parse_date_ms(value: Any) -> int:
    """Convert a feed date to epoch milliseconds; 0 when unknown.

    Accepts feedparser's UTC ``struct_time``, a ``datetime``, or an
    RFC 2822 / ISO 8601 string. Naive datetimes are taken as UTC.
    """
    if value is None or value == "":
        return 0

    dt: datetime | None = None
    if isinstance(value, time.struct_time):
        try:
            return max(0, calendar.timegm(value) * 1000)
        except (OverflowError, ValueError):
            return 0
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        raw = value.strip()
        try:
            dt = parsedate_to_datetime(raw)
        except (TypeError, ValueError, IndexError):
            try:
                dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError:
                return 0

    if dt is None:
        return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        return max(0, int(dt.timestamp() * 1000))
    except (OverflowError, OSError, ValueError):
        return 0


def _first_url(media: Any, key: str) -> str | None:
    if not media:
        return None
    first = media[0] if isinstance(media, list) else media
    if isinstance(first, str):
        return first or None
    if isinstance(first, dict):
        return first.get(key) or None
    return None


def _html_fields(entry: Any) -> list[str]:
    fields: list[str] = []
    for block in entry.get("content") or []:
        value = block.get("value") if isinstance(block, dict) else block
        if value:
            fields.append(str(value))
    for key in ("summary", "description"):
        value = entry.get(key)
        if value:
            fields.append(str(value))
    return fields


def extract_image_url(entry: Any) -> str | None:
    """Best-effort image: enclosure, media:content, media:thumbnail, inline <img>."""
    enclosure = _first_url(entry.get("enclosures"), "href") or _first_url(
        entry.get("enclosures"), "url"
    )
    if enclosure:
        return enclosure

    media = _first_url(entry.get("media_content"), "url")
    if media:
        return media

    thumbnail = _first_url(entry.get("media_thumbnail"), "url")
    if thumbnail:
        return thumbnail

    for html in _html_fields(entry):
        match = _IMG_SRC_RE.search(html)
        if match:
            return match.group(1)
    return None


def infer_source(entry: Any, feed_title: str | None) -> str:
    """Entry source title, then author, then feed title, then a generic label."""
    source = entry.get("source")
    if isinstance(source, dict) and source.get("title"):
        return str(source["title"]).strip()
    author = entry.get("author")
    if author:
        return str(author).strip()
    if feed_title:
        return str(feed_title).strip()
    return DEFAULT_SOURCE


def parse_feed(text: str) -> Any:
    """Parse feed XML with feedparser.

    The text is already decoded, so it is handed over as UTF-8 with a
    matching content type; that keeps a stale ``encoding="euc-kr"``
    declaration from being applied a second time.
    """
    parsed = feedparser.parse(
        text.encode("utf-8"),
        response_headers={"content-type": "application/xml; charset=utf-8"},
    )
    entries = parsed.get("entries") or []
    if parsed.get("bozo") and not entries:
        reason = parsed.get("bozo_exception")
        raise ParseError(f"Unparsable feed: {reason}")
    return parsed


def entry_to_item(entry: Any, feed_title: str | None) -> NewsItem | None:
    """Normalize one parsed entry; None when it lacks a title or a link."""
    title = strip_html(entry.get("title") or "")
    link = str(entry.get("link") or entry.get("id") or "").strip()
    if not title or not link:
        return None

    published_raw = entry.get("published") or entry.get("updated")
    published_ms = parse_date_ms(
        entry.get("published_parsed") or entry.get("updated_parsed")
    ) or parse_date_ms(published_raw)

    content = entry.get("content") or []
    first_content = content[0].get("value") if content and isinstance(content[0], dict) else None
    excerpt = strip_html(entry.get("summary") or first_content or "")

    return NewsItem(
        title=title,
        link=link,
        published_ms=published_ms,
        published_raw=published_raw,
        source=infer_source(entry, feed_title),
        excerpt=excerpt,
        image_url=extract_image_url(entry),
    )


def parse_items(text: str) -> list[NewsItem]:
    """Shape-check, parse and normalize a feed body.

    Raises:
        ShapeError: The body does not look like a feed.
        ParseError: The feed could not be parsed.
    """
    ensure_feed_shape(text)
    parsed = parse_feed(text)
    feed_title = parsed.get("feed", {}).get("title")

    items: list[NewsItem] = []
    for entry in parsed.get("entries") or []:
        item = entry_to_item(entry, feed_title)
        if item is not None:
            items.append(item)
    logger.debug("Parsed %d items from feed %r", len(items), feed_title)
    return items
