"""Command-line interface for the news_admin application."""

from __future__ import annotations

import argparse
import dataclasses
import getpass
import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, List, Optional

from . import db
from .api import NewsAdminClient
from .config import AppConfig, parse_app_config, parse_env_config, resolve_api_url
from .errors import NewsAdminError, ValidationError
from .forms import (
    apply_generated_content,
    save_article,
    validate_feed,
    validate_login,
    validate_newsletter,
    validate_prompt,
)
from .models import CATEGORIES, FEED_CATEGORIES, NewsItem
from .renderers import (
    build_article_preview,
    build_newsletter_html,
    build_newsletter_text,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "configs/config.xml"

Handler = Callable[[NewsAdminClient, argparse.Namespace], Any]


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Administer articles, feeds and subscribers of the news backend."
    )
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to the configuration XML file (default: {DEFAULT_CONFIG} if present).",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Backend base URL. Overrides NEWS_ADMIN_API_URL and the config.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    login = commands.add_parser("login", help="Check admin credentials.")
    login.add_argument("--email", required=True)
    login.add_argument("--password", help="Prompted for when omitted.")
    login.set_defaults(handler=_cmd_login)

    stats = commands.add_parser("stats", help="Show dashboard counters.")
    stats.set_defaults(handler=_cmd_stats)

    generate = commands.add_parser("generate", help="Draft an article with the AI helper.")
    generate.add_argument("prompt", help="Topic, rough draft or URL.")
    generate.set_defaults(handler=_cmd_generate)

    _add_news_commands(commands)
    _add_feed_commands(commands)

    live = commands.add_parser("live", help="Show the live feed for a category.")
    live.add_argument("--category", default=None)
    live.set_defaults(handler=_cmd_live)

    search = commands.add_parser("search", help="Search news.")
    search.add_argument("query")
    search.set_defaults(handler=_cmd_search)

    subscribers = commands.add_parser("subscribers", help="List newsletter subscribers.")
    subscribers.set_defaults(handler=_cmd_subscribers)

    _add_newsletter_commands(commands)
    _add_inbox_commands(commands)
    return parser


def _add_article_fields(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title")
    parser.add_argument("--content")
    parser.add_argument("--content-file", metavar="PATH")
    parser.add_argument(
        "--summary",
        action="append",
        help="Summary bullet point; repeat for several.",
    )
    parser.add_argument("--category", choices=CATEGORIES)
    parser.add_argument("--tag", action="append", dest="tags")
    parser.add_argument("--image-url")
    parser.add_argument("--video-url")
    parser.add_argument("--breaking", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--featured", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument(
        "--generate",
        metavar="PROMPT",
        help="Fill title, summary, category and tags from the AI helper first.",
    )
    parser.add_argument(
        "--from-file",
        metavar="PATH",
        help="Load the article from a JSON record before applying other options.",
    )


def _add_news_commands(commands) -> None:
    news = commands.add_parser("news", help="Manage news articles.")
    actions = news.add_subparsers(dest="action", metavar="ACTION")
    actions.required = True

    actions.add_parser("list", help="List all articles.").set_defaults(
        handler=_cmd_news_list
    )

    show = actions.add_parser("show", help="Show one article.")
    show.add_argument("id")
    show.set_defaults(handler=_cmd_news_show)

    preview = actions.add_parser("preview", help="Render a readable preview.")
    preview.add_argument("id", nargs="?")
    preview.add_argument("--from-file", metavar="PATH")
    preview.set_defaults(handler=_cmd_news_preview)

    publish = actions.add_parser("publish", help="Publish a new article.")
    _add_article_fields(publish)
    publish.set_defaults(handler=_cmd_news_publish)

    update = actions.add_parser("update", help="Edit an existing article.")
    update.add_argument("id")
    _add_article_fields(update)
    update.set_defaults(handler=_cmd_news_update)

    delete = actions.add_parser("delete", help="Delete an article.")
    delete.add_argument("id")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation.")
    delete.set_defaults(handler=_cmd_news_delete)


def _add_feed_commands(commands) -> None:
    feeds = commands.add_parser("feeds", help="Manage RSS sources.")
    actions = feeds.add_subparsers(dest="action", metavar="ACTION")
    actions.required = True

    listing = actions.add_parser("list", help="List RSS sources.")
    listing.add_argument(
        "--health", action="store_true", help="Include the backend health status."
    )
    listing.set_defaults(handler=_cmd_feeds_list)

    add = actions.add_parser("add", help="Register a new RSS source.")
    add.add_argument("--name", required=True)
    add.add_argument("--url", required=True)
    add.add_argument("--category", default="World", choices=FEED_CATEGORIES)
    add.set_defaults(handler=_cmd_feeds_add)

    delete = actions.add_parser("delete", help="Remove an RSS source.")
    delete.add_argument("id")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation.")
    delete.set_defaults(handler=_cmd_feeds_delete)

    actions.add_parser("health", help="Check every RSS source.").set_defaults(
        handler=_cmd_feeds_health
    )


def _add_newsletter_commands(commands) -> None:
    newsletter = commands.add_parser("newsletter", help="Compose newsletters.")
    actions = newsletter.add_subparsers(dest="action", metavar="ACTION")
    actions.required = True

    for name, handler, help_text in (
        ("send", _cmd_newsletter_send, "Send to all subscribers."),
        ("preview", _cmd_newsletter_preview, "Render the newsletter locally."),
    ):
        action = actions.add_parser(name, help=help_text)
        action.add_argument("--subject", required=True)
        body = action.add_mutually_exclusive_group(required=True)
        body.add_argument("--content", help="Markdown body.")
        body.add_argument("--content-file", metavar="PATH")
        action.set_defaults(handler=handler)

    preview = actions.choices["preview"]
    preview.add_argument("--output", metavar="PATH", help="Write the rendering to PATH.")
    preview.add_argument("--text", action="store_true", help="Render plain text.")


def _add_inbox_commands(commands) -> None:
    inbox = commands.add_parser("inbox", help="Read contact messages.")
    actions = inbox.add_subparsers(dest="action", metavar="ACTION")
    actions.required = True

    listing = actions.add_parser("list", help="List contact messages.")
    listing.add_argument("--unread", action="store_true", help="Only unread messages.")
    listing.set_defaults(handler=_cmd_inbox_list)

    read = actions.add_parser("read", help="Mark a message as read.")
    read.add_argument("id")
    read.set_defaults(handler=_cmd_inbox_read)

    delete = actions.add_parser("delete", help="Delete a message.")
    delete.add_argument("id")
    delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation.")
    delete.set_defaults(handler=_cmd_inbox_delete)


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Initialise logging according to options."""
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.setLevel(log_level)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        logger.debug(
            "Logger initialised with level %s and file output to %s",
            level_name.upper(),
            log_path,
        )
    else:
        logger.debug(
            "Logger initialised with console output at level %s", level_name.upper()
        )


def load_app_config(path: Optional[str]) -> AppConfig:
    """Load the named config, the default one when present, or built-in defaults."""
    if path:
        return parse_app_config(path)
    if Path(DEFAULT_CONFIG).exists():
        return parse_app_config(DEFAULT_CONFIG)
    return AppConfig()


def build_client(
    app_config: AppConfig, api_url: Optional[str] = None
) -> NewsAdminClient:
    """Create the backend client described by the configuration."""
    session_factory = None
    if app_config.database.enabled:
        if not app_config.database.connection_string:
            logger.warning(
                "Database enabled but no connection string provided. Caching disabled."
            )
        else:
            engine = db.init_engine(app_config.database.connection_string)
            if engine:
                session_factory = db.get_session_factory(engine)

    resolved = resolve_api_url(app_config, api_url)
    if not resolved:
        logger.info("No backend URL configured; using client-side feeds where possible")

    return NewsAdminClient(
        api_url=resolved,
        timeout=app_config.timeout,
        client_feeds=app_config.client_feeds,
        fallback=app_config.fallback,
        session_factory=session_factory,
    )


def _confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    answer = input(f"{prompt} [y/N] ").strip().lower()
    return answer in ("y", "yes")


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _load_record(path: str) -> dict:
    location = Path(path)
    try:
        payload = json.loads(location.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Article file is not valid JSON: {location}") from exc
    if not isinstance(payload, dict):
        raise ValidationError("Article file must contain a JSON object.")
    return payload


def _find_article(client: NewsAdminClient, news_id: str) -> NewsItem:
    for item in client.get_all_news():
        if item.id == news_id:
            return item
    raise NewsAdminError(f"Article not found: {news_id}")


def _draft_from_args(
    client: NewsAdminClient, args: argparse.Namespace, base: Optional[NewsItem] = None
) -> NewsItem:
    """Build an editor draft from a base article, a JSON file and CLI options."""
    draft = base or NewsItem()
    if args.from_file:
        draft = NewsItem.from_record(_load_record(args.from_file))

    if args.generate is not None:
        validate_prompt(args.generate)
        generated = client.generate_content(args.generate)
        if generated.is_placeholder:
            raise NewsAdminError("AI Generation failed")
        draft = apply_generated_content(draft, generated)
        logger.info("AI Generated!")

    changes = {}
    if args.title is not None:
        changes["title"] = args.title
    if args.content_file:
        changes["content"] = _read_text(args.content_file)
    elif args.content is not None:
        changes["content"] = args.content
    if args.summary is not None:
        changes["summary"] = list(args.summary)
    if args.category is not None:
        changes["category"] = args.category
    if args.tags is not None:
        changes["tags"] = list(args.tags)
    if args.image_url is not None:
        changes["image_url"] = args.image_url
    if args.video_url is not None:
        changes["video_url"] = args.video_url
    if args.breaking is not None:
        changes["is_breaking"] = args.breaking
    if args.featured is not None:
        changes["is_featured"] = args.featured
    return dataclasses.replace(draft, **changes)


def _cmd_login(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    password = args.password if args.password is not None else getpass.getpass()
    validate_login(args.email, password)
    result = client.login(args.email, password)
    if not client.is_authenticated:
        raise NewsAdminError("Login failed")
    return result


def _cmd_stats(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    return client.get_stats()


def _cmd_generate(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    validate_prompt(args.prompt)
    return client.generate_content(args.prompt)


def _cmd_news_list(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    return client.get_all_news()


def _cmd_news_show(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    return _find_article(client, args.id)


def _cmd_news_preview(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    if args.from_file:
        item = NewsItem.from_record(_load_record(args.from_file))
    elif args.id:
        item = _find_article(client, args.id)
    else:
        raise ValidationError("Give an article id or --from-file.")
    return build_article_preview(item)


def _cmd_news_publish(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    draft = _draft_from_args(client, args)
    return save_article(client, draft)


def _cmd_news_update(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    base = None if args.from_file else _find_article(client, args.id)
    draft = _draft_from_args(client, args, base=base)
    return save_article(client, draft, editing_id=args.id)


def _cmd_news_delete(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    if not _confirm("Delete article?", args.yes):
        logger.info("Deletion cancelled")
        return {"id": args.id, "deleted": False}
    client.delete_news(args.id)
    logger.info("Article deleted")
    return {"id": args.id, "deleted": True}


def _cmd_feeds_list(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    feeds = [feed.to_dict() for feed in client.get_rss_feeds()]
    if args.health:
        status = client.check_rss_health()
        for feed in feeds:
            feed["health"] = status.get(str(feed["id"]), "unknown")
    return feeds


def _cmd_feeds_add(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    validate_feed(args.name, args.url, args.category)
    result = client.add_rss_feed(args.name, args.url, args.category)
    if not client.has_backend:
        logger.warning("Backend not configured; feed was not saved")
    else:
        logger.info("Feed added successfully")
    return result


def _cmd_feeds_delete(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    if not _confirm("Delete this feed?", args.yes):
        logger.info("Deletion cancelled")
        return {"id": args.id, "deleted": False}
    deleted = bool(client.delete_rss_feed(args.id))
    if deleted:
        logger.info("Feed deleted")
    return {"id": args.id, "deleted": deleted}


def _cmd_feeds_health(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    return client.check_rss_health()


def _cmd_live(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    return client.get_live_feed(args.category)


def _cmd_search(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    return client.search_news(args.query)


def _cmd_subscribers(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    return client.get_subscribers()


def _newsletter_body(args: argparse.Namespace) -> str:
    if args.content_file:
        return _read_text(args.content_file)
    return args.content


def _cmd_newsletter_send(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    content = _newsletter_body(args)
    validate_newsletter(args.subject, content)
    result = client.send_newsletter(args.subject, content)
    if result.get("success"):
        logger.info("Newsletter queued for %s subscribers", result.get("count", 0))
    else:
        logger.warning("Newsletter was not sent")
    return result


def _cmd_newsletter_preview(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    content = _newsletter_body(args)
    validate_newsletter(args.subject, content)
    if args.text:
        rendered = build_newsletter_text(args.subject, content)
    else:
        rendered = build_newsletter_html(args.subject, content)

    if args.output:
        location = Path(args.output)
        if location.parent and not location.parent.exists():
            location.parent.mkdir(parents=True, exist_ok=True)
        location.write_text(rendered, encoding="utf-8")
        logger.info("Wrote newsletter preview to %s", location)
        return None
    return rendered


def _cmd_inbox_list(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    messages = client.get_contact_messages()
    if args.unread:
        messages = [message for message in messages if not message.is_read]
    return messages


def _cmd_inbox_read(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    client.mark_contact_read(args.id)
    logger.info("Message marked as read")
    return {"id": args.id, "status": "read"}


def _cmd_inbox_delete(client: NewsAdminClient, args: argparse.Namespace) -> Any:
    if not _confirm("Are you sure you want to delete this message?", args.yes):
        logger.info("Deletion cancelled")
        return {"id": args.id, "deleted": False}
    client.delete_contact_message(args.id)
    logger.info("Message deleted")
    return {"id": args.id, "deleted": True}


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return str(value)


def format_output(result: Any) -> str:
    """Render a command result for stdout."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=_json_default)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = load_app_config(args.config)

        if app_config.env_file:
            env_vars = parse_env_config(app_config.env_file)
            os.environ.update(env_vars)

        # CLI overrides config
        log_level = args.log_level or app_config.logging.level
        log_file = args.log_file or app_config.logging.file

        configure_logging(log_level, log_file)

        client = build_client(app_config, args.api_url)
    except ValueError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1

    logger.debug("Running command %s against %s", args.command, client.api_url or "<none>")
    try:
        result = args.handler(client, args)
    except ValidationError as exc:
        parser.error(str(exc))
    except (RuntimeError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    if result is not None:
        print(format_output(result))
    return 0
