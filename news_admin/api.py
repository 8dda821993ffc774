"""HTTP client for the news backend used by every admin operation."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from .aggregator import collect_live_feed, search_feeds
from .config import DEFAULT_CLIENT_FEEDS, FallbackConfig
from .errors import ApiError, BackendNotConfiguredError, NewsAdminError
from .models import (
    ORIGINALS,
    ContactMessage,
    DashboardStats,
    FeedConfig,
    GeneratedContent,
    NewsItem,
    RSSFeed,
    Subscriber,
    map_category,
)

logger = logging.getLogger(__name__)

USER_AGENT = "news-admin/0.1"


class NewsAdminClient:
    """Thin wrapper over the backend REST API.

    When ``api_url`` is empty, reads return empty results, mutations raise
    :class:`BackendNotConfiguredError`, and the live feed and search are
    served by the client-side RSS fallback.
    """

    def __init__(
        self,
        api_url: str = "",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        client_feeds: Optional[Mapping[str, Sequence[str]]] = None,
        fallback: Optional[FallbackConfig] = None,
        session_factory=None,
    ) -> None:
        self.api_url = (api_url or "").strip().rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.client_feeds = (
            client_feeds if client_feeds is not None else DEFAULT_CLIENT_FEEDS
        )
        self.fallback = fallback or FallbackConfig(timeout=timeout)
        self.session_factory = session_factory
        self.is_authenticated = False

    @property
    def has_backend(self) -> bool:
        return bool(self.api_url)

    # ------------------------------------------------------------------
    # Transport

    def _request(
        self, method: str, path: str, error_message: str, **kwargs: Any
    ) -> requests.Response:
        url = f"{self.api_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            raise ApiError(error_message) from exc

        if not response.ok:
            logger.debug("%s %s returned HTTP %s", method, url, response.status_code)
            raise ApiError(error_message, status_code=response.status_code)
        return response

    def _json(self, method: str, path: str, error_message: str, **kwargs: Any) -> Any:
        response = self._request(method, path, error_message, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(error_message, status_code=response.status_code) from exc

    def _require_backend(self, message: str = "Backend not configured") -> None:
        if not self.has_backend:
            raise BackendNotConfiguredError(message)

    # ------------------------------------------------------------------
    # Authentication

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self._require_backend("Backend unreachable")
        result = self._json(
            "POST",
            "/api/login",
            "Invalid credentials",
            json={"email": email, "password": password},
        )
        result = result if isinstance(result, dict) else {}
        token = result.get("token")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self.is_authenticated = bool(result.get("success"))
        logger.info(
            "Login for %s %s", email, "succeeded" if self.is_authenticated else "refused"
        )
        return result

    # ------------------------------------------------------------------
    # News articles

    def get_all_news(self) -> List[NewsItem]:
        if not self.has_backend:
            return []
        records = self._json("GET", "/api/news", "Failed to fetch news")
        return [NewsItem.from_record(record) for record in records or []]

    def publish_news(self, payload: Dict[str, Any]) -> Any:
        self._require_backend()
        return self._json("POST", "/api/news", "Failed to publish", json=payload)

    def update_news(self, news_id: str, payload: Dict[str, Any]) -> Any:
        self._require_backend()
        return self._json(
            "PUT", f"/api/news/{news_id}", "Failed to update news", json=payload
        )

    def delete_news(self, news_id: str) -> bool:
        self._require_backend("Backend unreachable")
        self._request("DELETE", f"/api/news/{news_id}", "Failed to delete news")
        return True

    def generate_content(self, prompt: str) -> GeneratedContent:
        """Ask the backend to draft headline, summary and tags for a prompt."""
        if not self.has_backend:
            return GeneratedContent(
                headline="AI Only Available with Backend",
                summary=["Please connect to the backend."],
                category="System",
                tags=["Preview"],
                is_placeholder=True,
            )
        try:
            record = self._json(
                "POST", "/api/generate", "Backend request failed", json={"prompt": prompt}
            )
        except NewsAdminError as exc:
            logger.warning("Content generation failed: %s", exc)
            return GeneratedContent(
                headline="AI Offline",
                summary=["Backend unavailable."],
                category="World",
                tags=["Error"],
                is_placeholder=True,
            )
        return GeneratedContent.from_record(record or {})

    def get_stats(self) -> DashboardStats:
        if not self.has_backend:
            return DashboardStats()
        return DashboardStats.from_record(
            self._json("GET", "/api/stats", "Failed to fetch stats") or {}
        )

    # ------------------------------------------------------------------
    # RSS sources

    def get_rss_feeds(self) -> List[RSSFeed]:
        if not self.has_backend:
            return []
        records = self._json("GET", "/api/rss-feeds", "Failed to fetch feeds")
        return [RSSFeed.from_record(record) for record in records or []]

    def add_rss_feed(self, name: str, url: str, category: str) -> Any:
        if not self.has_backend:
            return None
        return self._json(
            "POST",
            "/api/rss-feeds",
            "Failed to add feed",
            json={"name": name, "url": url, "category": category},
        )

    def delete_rss_feed(self, feed_id: str) -> Optional[bool]:
        if not self.has_backend:
            return None
        self._request("DELETE", f"/api/rss-feeds/{feed_id}", "Failed to delete feed")
        return True

    def check_rss_health(self) -> Dict[str, str]:
        if not self.has_backend:
            return {}
        status = self._json("GET", "/api/rss-feeds/health", "Failed to check health")
        return {str(key): value for key, value in (status or {}).items()}

    # ------------------------------------------------------------------
    # Reading surfaces

    def search_news(self, query: str) -> Dict[str, Any]:
        if self.has_backend:
            try:
                return self._json(
                    "POST", "/api/search", "Search request failed", json={"query": query}
                )
            except NewsAdminError as exc:
                logger.warning("Backend search unavailable (%s); searching feeds", exc)
        return search_feeds(query, self.client_feeds, self.fallback)

    def get_live_feed(self, category: Optional[str] = None) -> Dict[str, Any]:
        mapped = map_category(category)
        if self.has_backend:
            try:
                return self._json(
                    "GET",
                    "/api/live-feed",
                    "Backend feed request failed",
                    params={"category": mapped},
                )
            except NewsAdminError as exc:
                logger.warning(
                    "Backend unavailable (%s), using client-side fallback", exc
                )
        if mapped == ORIGINALS:
            return {"articles": []}
        return collect_live_feed(
            mapped,
            self._fallback_feeds(mapped),
            self.fallback,
            session_factory=self.session_factory,
        )

    def _fallback_feeds(self, category: str) -> List[FeedConfig]:
        """Pick the feeds the client-side fallback should read for a category."""
        mapped = map_category(category)
        feeds: List[FeedConfig] = []

        if self.has_backend:
            try:
                feeds = [
                    FeedConfig(category=mapped, title=feed.name or feed.url, url=feed.url)
                    for feed in self.get_rss_feeds()
                    if feed.category in (mapped, category) and feed.url
                ]
            except NewsAdminError as exc:
                logger.warning(
                    "Failed to fetch dynamic feeds for client-side fallback: %s", exc
                )

        if not feeds:
            urls = self.client_feeds.get(mapped) or self.client_feeds.get("World") or []
            feeds = [FeedConfig(category=mapped, title=url, url=url) for url in urls]
        return feeds

    # ------------------------------------------------------------------
    # Audience

    def get_subscribers(self) -> List[Subscriber]:
        if not self.has_backend:
            return []
        records = self._json("GET", "/api/subscribers", "Failed to fetch subscribers")
        return [Subscriber.from_record(record) for record in records or []]

    def send_newsletter(self, subject: str, content: str) -> Dict[str, Any]:
        if not self.has_backend:
            return {"success": False}
        return self._json(
            "POST",
            "/api/newsletter/send",
            "Failed to send newsletter",
            json={"subject": subject, "content": content},
        )

    # ------------------------------------------------------------------
    # Contact inbox

    def get_contact_messages(self) -> List[ContactMessage]:
        if not self.has_backend:
            return []
        records = self._json("GET", "/api/contact", "Failed to fetch messages")
        return [ContactMessage.from_record(record) for record in records or []]

    def mark_contact_read(self, message_id: str) -> bool:
        self._require_backend()
        self._request(
            "PUT", f"/api/contact/{message_id}/read", "Failed to mark message as read"
        )
        return True

    def delete_contact_message(self, message_id: str) -> bool:
        self._require_backend()
        self._request("DELETE", f"/api/contact/{message_id}", "Failed to delete message")
        return True
