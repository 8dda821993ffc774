"""Client-side RSS aggregation used when the backend cannot serve feeds."""

from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from . import db
from .config import FallbackConfig
from .feeds import (
    entry_to_article,
    fetch_feed_entries,
    matches_query,
    select_diverse_entries,
)
from .models import ORIGINALS, FeedConfig, FeedEntry

logger = logging.getLogger(__name__)

SEARCH_CATEGORIES = ("World", "India", "Technology")
SEARCH_FEEDS_PER_CATEGORY = 2


def _fetch_all(
    feeds: Sequence[FeedConfig], settings: FallbackConfig
) -> Tuple[List[FeedEntry], bool]:
    """Fetch feeds in parallel; returns the entries and whether any feed answered."""
    collected: List[FeedEntry] = []
    any_entries_fetched = False

    def process_feed(feed: FeedConfig) -> List[FeedEntry]:
        try:
            return fetch_feed_entries(feed, timeout=settings.timeout)
        except Exception:
            logger.exception("Failed to process feed %s", feed.url)
            return []

    if not feeds:
        return collected, any_entries_fetched

    workers = max(1, min(settings.concurrency, len(feeds)))
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_feed = {executor.submit(process_feed, feed): feed for feed in feeds}
        for future in concurrent.futures.as_completed(future_to_feed):
            entries = future.result()
            if entries:
                any_entries_fetched = True
                collected.extend(entries)

    return collected, any_entries_fetched


def collect_live_feed(
    category: str,
    feeds: Sequence[FeedConfig],
    settings: Optional[FallbackConfig] = None,
    session_factory=None,
) -> Dict[str, Any]:
    """Fetch, merge and rank feed articles for a category."""
    settings = settings or FallbackConfig()
    if category == ORIGINALS:
        return {"articles": []}

    selected_feeds = list(feeds)[: settings.max_feeds]
    logger.info(
        "Client-side fallback for '%s' using %d feeds", category, len(selected_feeds)
    )

    entries, any_entries_fetched = _fetch_all(selected_feeds, settings)
    diverse = select_diverse_entries(entries, settings.per_source_limit)
    articles = [
        entry_to_article(entry, category, settings.summary_length) for entry in diverse
    ]

    if session_factory:
        with session_factory() as session:
            if any_entries_fetched:
                db.upsert_articles(session, articles)
            else:
                cached = db.get_recent_articles(
                    session,
                    category,
                    limit=settings.max_feeds * settings.per_source_limit,
                )
                if cached:
                    logger.warning(
                        "No feed answered for '%s'; serving %d cached articles",
                        category,
                        len(cached),
                    )
                    articles = cached

    return {"articles": articles}


def search_feeds(
    query: str,
    client_feeds: Mapping[str, Sequence[str]],
    settings: Optional[FallbackConfig] = None,
) -> Dict[str, Any]:
    """Search the configured client feeds for a query string."""
    settings = settings or FallbackConfig()
    feeds: List[FeedConfig] = []
    for category in SEARCH_CATEGORIES:
        for url in list(client_feeds.get(category) or [])[:SEARCH_FEEDS_PER_CATEGORY]:
            feeds.append(FeedConfig(category=category, title=url, url=url))

    entries, _ = _fetch_all(feeds, settings)
    matches = sorted(
        (entry for entry in entries if matches_query(entry, query)),
        key=lambda item: item.published,
        reverse=True,
    )
    matches.sort(key=lambda item: SEARCH_CATEGORIES.index(item.category))
    articles = [
        entry_to_article(entry, entry.category, settings.summary_length)
        for entry in matches
    ]
    logger.info("Client-side search for %r matched %d articles", query, len(articles))
    return {"articles": articles}
