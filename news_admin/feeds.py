"""Feed parsing and selection helpers for the client-side fallback."""

from __future__ import annotations

import calendar
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import feedparser
import requests
from bs4 import BeautifulSoup

from .models import FeedConfig, FeedEntry

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE = "Unknown"


def to_datetime(value: Optional[time.struct_time]) -> datetime:
    """Convert feedparser timestamps to timezone-aware datetimes."""
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)


def fetch_feed_entries(feed: FeedConfig, timeout: float = 10.0) -> List[FeedEntry]:
    """Fetch entries from a single RSS feed definition."""
    logger.info("Fetching feed '%s' (%s)", feed.title, feed.url)
    try:
        response = requests.get(feed.url, timeout=timeout)
        response.raise_for_status()
        content = response.content
    except requests.RequestException as e:
        logger.warning("Failed to fetch feed '%s' (%s): %s", feed.title, feed.url, e)
        return []

    parsed = feedparser.parse(content)
    source = _feed_title(parsed) or feed.title
    entries: List[FeedEntry] = []

    for entry in parsed.entries:
        link = getattr(entry, "link", None)
        title = getattr(entry, "title", None)

        if not link or not title:
            logger.debug("Skipping entry without link or title in feed '%s'", feed.url)
            continue

        summary = getattr(entry, "summary", None)
        if not summary:
            summary_detail = getattr(entry, "summary_detail", None)
            if summary_detail:
                summary = summary_detail.get("value")
        if not summary:
            content = getattr(entry, "content", None)
            if content:
                try:
                    summary = content[0].get("value")
                except (TypeError, KeyError, IndexError, AttributeError):
                    summary = None
        if summary:
            summary = strip_html(summary)

        published = None
        for attr in ("published_parsed", "updated_parsed", "created_parsed"):
            published = getattr(entry, attr, None)
            if published:
                break

        entries.append(
            FeedEntry(
                link=link,
                title=title,
                category=feed.category,
                published=to_datetime(published),
                summary=summary,
                source=source,
                image=_entry_image(entry),
            )
        )

    logger.info("Collected %d entries from feed '%s'", len(entries), feed.url)
    return entries


def _feed_title(parsed: Any) -> Optional[str]:
    channel = getattr(parsed, "feed", None)
    if channel is None:
        return None
    if hasattr(channel, "get"):
        return channel.get("title")
    return getattr(channel, "title", None)


def _entry_image(entry: Any) -> Optional[str]:
    """Return the first thumbnail or enclosure URL attached to an entry."""
    thumbnails = getattr(entry, "media_thumbnail", None) or []
    for thumbnail in thumbnails:
        url = thumbnail.get("url") if hasattr(thumbnail, "get") else None
        if url:
            return url

    enclosures = getattr(entry, "enclosures", None) or []
    for enclosure in enclosures:
        if not hasattr(enclosure, "get"):
            continue
        url = enclosure.get("href") or enclosure.get("url")
        if url:
            return url
    return None


def strip_html(raw_value: str) -> str:
    """Return text content extracted from HTML fragments."""
    soup = BeautifulSoup(raw_value, "html.parser")
    text = soup.get_text(separator=" ", strip=True)
    text = re.sub(r"\s+([.,;:!?])", r"\1", text)
    text = re.sub(r"\s{2,}", " ", text)
    return text.strip()


def summarise(text: Optional[str], length: int = 150) -> str:
    """Cut a description down to a teaser line."""
    return (text or "")[:length] + "..."


def matches_query(entry: FeedEntry, query: str) -> bool:
    """Case-insensitive match against title and description."""
    needle = query.lower()
    if needle in entry.title.lower():
        return True
    return bool(entry.summary) and needle in entry.summary.lower()


def select_diverse_entries(
    entries: Iterable[FeedEntry], per_source_limit: int = 5
) -> List[FeedEntry]:
    """Return the newest entries with at most ``per_source_limit`` per source."""
    sorted_entries = sorted(entries, key=lambda item: item.published, reverse=True)
    source_counts: Dict[str, int] = {}
    selected: List[FeedEntry] = []

    for entry in sorted_entries:
        source = entry.source or UNKNOWN_SOURCE
        count = source_counts.get(source, 0)
        if count >= per_source_limit:
            continue
        source_counts[source] = count + 1
        selected.append(entry)

    logger.info(
        "Selected %d entries from %d sources (cap %d per source)",
        len(selected),
        len(source_counts),
        per_source_limit,
    )
    return selected


def entry_to_article(
    entry: FeedEntry, category: str, summary_length: int = 150
) -> Dict[str, Any]:
    """Shape a feed entry like a live-feed article from the backend."""
    published = None
    if entry.published > datetime.min.replace(tzinfo=timezone.utc):
        published = entry.published.isoformat()
    return {
        "title": entry.title,
        "summary": [summarise(entry.summary, summary_length)],
        "url": entry.link,
        "published_at": published,
        "source": entry.source,
        "category": category,
        "image_url": entry.image,
    }
