"""Required-field checks and payload assembly for the admin editors."""

from __future__ import annotations

import dataclasses
import logging
import random
from typing import Any, Dict, Optional

from .errors import ValidationError
from .models import CATEGORIES, FEED_CATEGORIES, GeneratedContent, NewsItem

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE = "https://picsum.photos/seed/{seed}/800/600"
DEFAULT_AUTHOR = "Admin"


def validate_login(email: Optional[str], password: Optional[str]) -> None:
    if not email or not password:
        raise ValidationError("Email and password required")


def validate_prompt(prompt: Optional[str]) -> None:
    if not prompt or not prompt.strip():
        raise ValidationError("Enter text or URL")


def validate_article(item: NewsItem) -> None:
    if not item.title or not item.content:
        raise ValidationError("Title and Content required")
    if item.category not in CATEGORIES:
        raise ValidationError(f"Unknown category: {item.category}")


def validate_feed(name: Optional[str], url: Optional[str], category: str) -> None:
    if not name or not url:
        raise ValidationError("Name and URL required")
    if category not in FEED_CATEGORIES:
        raise ValidationError(f"Unknown category: {category}")


def validate_newsletter(subject: Optional[str], content: Optional[str]) -> None:
    if not subject or not content:
        raise ValidationError("Subject and content required")


def build_article_payload(
    item: NewsItem, image_seed: Optional[str] = None
) -> Dict[str, Any]:
    """Assemble the body the backend expects when saving an article."""
    image_url = item.image_url
    if not image_url:
        seed = image_seed if image_seed is not None else str(random.random())
        image_url = PLACEHOLDER_IMAGE.format(seed=seed)

    return {
        "title": item.title,
        "summary": list(item.summary),
        "content": item.content,
        "category": item.category,
        "tags": list(item.tags),
        "image_url": image_url,
        "video_url": item.video_url,
        "is_breaking": item.is_breaking,
        "is_featured": item.is_featured,
        "is_ai_generated": item.is_ai_generated,
        "author": DEFAULT_AUTHOR,
    }


def apply_generated_content(item: NewsItem, generated: GeneratedContent) -> NewsItem:
    """Return a copy of the draft filled in with generated material."""
    return dataclasses.replace(
        item,
        title=generated.headline or item.title,
        summary=list(generated.summary),
        category=(
            generated.category if generated.category in CATEGORIES else item.category
        ),
        tags=list(generated.tags),
        is_ai_generated=True,
    )


def save_article(client, item: NewsItem, editing_id: Optional[str] = None) -> Any:
    """Validate a draft and publish it, or update it when ``editing_id`` is set."""
    validate_article(item)
    payload = build_article_payload(item)
    if editing_id:
        result = client.update_news(editing_id, payload)
        logger.info("Updated successfully")
    else:
        result = client.publish_news(payload)
        logger.info("Published successfully")
    return result
