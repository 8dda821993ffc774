"""Jinja2 environment for news_admin templates."""

from __future__ import annotations

from importlib import resources

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

_ENV: Environment | None = None

ALLOWED_TAGS = [
    "p", "ul", "ol", "li", "strong", "em", "b", "i", "br", "a", "h2", "h3",
    "blockquote",
]
ALLOWED_ATTRIBUTES = {"a": ["href", "title", "target"]}

# Newsletter bodies go out by email, so styling has to be inline.
INLINE_STYLES = {
    "<ul>": '<ul style="padding-left: 20px; margin: 0 0 16px 0;">',
    "<ol>": '<ol style="padding-left: 20px; margin: 0 0 16px 0;">',
    "<li>": '<li style="margin-bottom: 4px;">',
    "<p>": '<p style="margin: 0 0 12px 0;">',
    "<blockquote>": '<blockquote style="margin: 0 0 12px 0; padding-left: 12px; '
    'border-left: 3px solid #ddd; color: #555;">',
}


def _render_markdown(value: str | None) -> Markup:
    """Render a newsletter body written in markdown to sanitised HTML."""
    if not value:
        return Markup("")

    # Only newsletter previews need these.
    from markdown_it import MarkdownIt
    import bleach

    md = MarkdownIt("commonmark", {"breaks": True, "html": False})
    clean_html = bleach.clean(
        md.render(value),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True,
    )
    for tag, styled in INLINE_STYLES.items():
        clean_html = clean_html.replace(tag, styled)
    return Markup(clean_html)


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        _ENV = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        _ENV.filters["markdown"] = _render_markdown
    return _ENV
