"""Database abstraction layer for caching fallback feed articles."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime, String, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class ArticleModel(Base):
    """Article gathered by the client-side RSS fallback."""

    __tablename__ = "fallback_articles"

    url = Column(String, primary_key=True)
    title = Column(String, nullable=True)
    summary = Column(JSON, nullable=True)
    source = Column(String, nullable=True)
    category = Column(String, nullable=True, index=True)
    image = Column(String, nullable=True)
    published = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=lambda: _utcnow())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_published(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            logger.debug("Ignoring unparseable publish date %r", value)
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def init_engine(connection_string: Optional[str]) -> Optional[Engine]:
    """Initialize the database engine."""
    if not connection_string:
        return None

    logger.info("Initializing database connection: %s", connection_string)
    engine = create_engine(connection_string)
    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory for the given engine."""
    return sessionmaker(bind=engine)


def _to_article(row: ArticleModel) -> Dict[str, Any]:
    published = None
    if row.published is not None:
        published = row.published.replace(tzinfo=timezone.utc).isoformat()
    return {
        "title": row.title,
        "summary": list(row.summary or []),
        "url": row.url,
        "published_at": published,
        "source": row.source,
        "category": row.category,
        "image_url": row.image,
    }


def upsert_articles(session: Session, articles: List[Dict[str, Any]]) -> None:
    """Insert or update fallback articles keyed by URL."""
    by_url = {article["url"]: article for article in articles if article.get("url")}
    if not by_url:
        return

    stmt = select(ArticleModel).where(ArticleModel.url.in_(list(by_url)))
    existing = {row.url: row for row in session.execute(stmt).scalars().all()}

    for url, data in by_url.items():
        row = existing.get(url)
        if row is None:
            row = ArticleModel(url=url)
            session.add(row)
        row.title = data.get("title")
        row.summary = list(data.get("summary") or [])
        row.source = data.get("source")
        row.category = data.get("category")
        row.image = data.get("image_url")
        published = _parse_published(data.get("published_at"))
        if published:
            row.published = published
        row.updated_at = _utcnow()

    try:
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.debug("Cached %d fallback articles", len(by_url))


def get_recent_articles(
    session: Session, category: str, limit: int = 20
) -> List[Dict[str, Any]]:
    """Return the newest cached articles for a category."""
    stmt = (
        select(ArticleModel)
        .where(ArticleModel.category == category)
        .order_by(
            ArticleModel.published.is_(None),
            ArticleModel.published.desc(),
        )
        .limit(limit)
    )
    return [_to_article(row) for row in session.execute(stmt).scalars().all()]
