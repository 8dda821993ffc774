"""Rendering helpers for newsletter and article previews."""

from __future__ import annotations

import datetime

from .models import NewsItem
from .templating import get_environment


def build_newsletter_html(subject: str, content: str) -> str:
    """Render the HTML newsletter body the way subscribers will see it."""
    env = get_environment()
    template = env.get_template("newsletter.html.j2")
    today = datetime.date.today().strftime("%B %d, %Y")
    return template.render(subject=subject, content=content, date=today)


def build_newsletter_text(subject: str, content: str) -> str:
    """Render the plain-text newsletter body."""
    env = get_environment()
    template = env.get_template("newsletter.txt.j2")
    return template.render(subject=subject, content=content)


def build_article_preview(item: NewsItem) -> str:
    env = get_environment()
    template = env.get_template("article.txt.j2")
    return template.render(item=item)
