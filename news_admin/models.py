"""Shared data models for news_admin."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

ORIGINALS = "Originals"

CATEGORIES = [
    "India",
    ORIGINALS,
    "World",
    "Sports",
    "Technology",
    "Education",
    "Environment",
    "Business",
]

# Originals are written in the CMS, never pulled from a feed.
FEED_CATEGORIES = [category for category in CATEGORIES if category != ORIGINALS]

DEFAULT_SOURCE = "Gathered Original"


def map_category(value: Optional[str]) -> str:
    """Normalise legacy category names used by the public site."""
    if value == "Tech":
        return "Technology"
    return value or "World"


@dataclass
class NewsItem:
    """A news article as stored by the backend."""

    title: str = ""
    content: str = ""
    summary: List[str] = field(default_factory=list)
    category: str = "World"
    tags: List[str] = field(default_factory=list)
    id: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    source: str = DEFAULT_SOURCE
    url: Optional[str] = None
    author: Optional[str] = None
    published_at: Optional[str] = None
    is_breaking: bool = False
    is_featured: bool = False
    is_ai_generated: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "NewsItem":
        summary = record.get("summary") or []
        if isinstance(summary, str):
            summary = [summary]
        return cls(
            id=_as_id(record.get("id")),
            title=record.get("title") or "",
            summary=list(summary),
            content=record.get("content") or "",
            category=record.get("category") or "World",
            tags=list(record.get("tags") or []),
            image_url=record.get("image_url"),
            video_url=record.get("video_url"),
            source=record.get("source") or DEFAULT_SOURCE,
            url=record.get("source_url"),
            author=record.get("author"),
            published_at=record.get("published_at"),
            is_breaking=bool(record.get("is_breaking")),
            is_featured=bool(record.get("is_featured")),
            is_ai_generated=bool(record.get("is_ai_generated")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RSSFeed:
    """An RSS source registered with the backend."""

    id: Optional[str]
    name: str
    url: str
    category: str

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RSSFeed":
        return cls(
            id=_as_id(record.get("id")),
            name=record.get("name") or "",
            url=record.get("url") or "",
            category=record.get("category") or "World",
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Subscriber:
    """A newsletter subscriber."""

    id: Optional[str]
    email: str
    name: Optional[str] = None
    whatsapp: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Subscriber":
        return cls(
            id=_as_id(record.get("id")),
            email=record.get("email") or "",
            name=record.get("name"),
            whatsapp=record.get("whatsapp"),
            created_at=record.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ContactMessage:
    """A message submitted through the public contact form."""

    id: Optional[str]
    name: str
    email: str
    message: str
    status: str = "unread"
    created_at: Optional[str] = None

    @property
    def is_read(self) -> bool:
        return self.status == "read"

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ContactMessage":
        return cls(
            id=_as_id(record.get("id")),
            name=record.get("name") or "",
            email=record.get("email") or "",
            message=record.get("message") or "",
            status=record.get("status") or "unread",
            created_at=record.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DashboardStats:
    """Counters shown on the dashboard overview."""

    total: int = 0
    ai_count: int = 0
    breaking_count: int = 0
    featured_count: int = 0
    originals: int = 0
    live: int = 0
    feeds: int = 0
    categories: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "DashboardStats":
        return cls(
            total=int(record.get("total") or 0),
            ai_count=int(record.get("aiCount") or 0),
            breaking_count=int(record.get("breakingCount") or 0),
            featured_count=int(record.get("featuredCount") or 0),
            originals=int(record.get("originals") or 0),
            live=int(record.get("live") or 0),
            feeds=int(record.get("feeds") or 0),
            categories={
                str(name): int(count)
                for name, count in (record.get("categories") or {}).items()
            },
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GeneratedContent:
    """Draft material returned by the backend's AI generator."""

    headline: str
    summary: List[str] = field(default_factory=list)
    category: str = "World"
    tags: List[str] = field(default_factory=list)
    # Set on the stand-in returned when the backend cannot generate.
    is_placeholder: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "GeneratedContent":
        summary = record.get("summary") or []
        if isinstance(summary, str):
            summary = [summary]
        return cls(
            headline=record.get("headline") or record.get("title") or "",
            summary=list(summary),
            category=record.get("category") or "World",
            tags=list(record.get("tags") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class FeedConfig:
    """Configuration for a single RSS feed."""

    category: str
    title: str
    url: str


@dataclass
class FeedEntry:
    """Simplified RSS feed entry used by the client-side fallback."""

    link: str
    category: str
    title: str
    published: datetime
    summary: Optional[str] = None
    source: Optional[str] = None
    image: Optional[str] = None


def _as_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
