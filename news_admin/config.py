"""Configuration loading for the admin client."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from .models import FeedConfig

logger = logging.getLogger(__name__)

API_URL_ENV = "NEWS_ADMIN_API_URL"

DEFAULT_CLIENT_FEEDS: Dict[str, List[str]] = {
    "World": ["http://feeds.bbci.co.uk/news/world/rss.xml"],
}


@dataclass
class FallbackConfig:
    max_feeds: int = 4
    per_source_limit: int = 5
    summary_length: int = 150
    concurrency: int = 4
    timeout: float = 10.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class DatabaseConfig:
    enabled: bool = False
    connection_string: Optional[str] = None


@dataclass
class AppConfig:
    api_url: str = ""
    timeout: float = 10.0
    env_file: Optional[str] = None
    client_feeds: Dict[str, List[str]] = field(
        default_factory=lambda: {
            category: list(urls) for category, urls in DEFAULT_CLIENT_FEEDS.items()
        }
    )
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def parse_feeds_config(path: str) -> List[FeedConfig]:
    """Parse the OPML configuration file and return feed definitions."""
    logger.info("Loading feed configuration from %s", path)
    tree = ET.parse(path)
    root = tree.getroot()
    body = root.find("body")
    feeds: List[FeedConfig] = []

    def walk(outline: ET.Element, current_category: Optional[str]) -> None:
        title = outline.attrib.get("title") or outline.attrib.get("text")
        feed_url = outline.attrib.get("xmlUrl")
        outline_type = outline.attrib.get("type")
        children = list(outline.findall("outline"))

        if outline_type == "rss" and feed_url:
            feeds.append(
                FeedConfig(
                    category=current_category or title or "World",
                    title=title or feed_url,
                    url=feed_url,
                )
            )
            logger.debug(
                "Registered feed '%s' (category='%s')", feed_url, feeds[-1].category
            )
            return

        next_category = title if title else current_category
        for child in children:
            walk(child, next_category)

    if body is None:
        raise ValueError(f"{path} is missing the <body> section.")

    for outline in body.findall("outline"):
        walk(outline, outline.attrib.get("title") or outline.attrib.get("text"))

    logger.info("Loaded %d feed endpoints from configuration", len(feeds))
    return feeds


def group_feeds_by_category(feeds: List[FeedConfig]) -> Dict[str, List[str]]:
    """Group feed URLs by category, keeping file order."""
    grouped: Dict[str, List[str]] = {}
    for feed in feeds:
        grouped.setdefault(feed.category, []).append(feed.url)
    return grouped


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def parse_env_config(path: str) -> Dict[str, str]:
    """Parse environment variables from XML."""
    env_vars = {}
    if not path:
        return env_vars

    logger.info("Loading environment configuration from %s", path)
    try:
        tree = ET.parse(path)
        root = tree.getroot()
        for var in root.findall("variable"):
            name = var.attrib.get("name")
            value = var.text
            if name and value:
                env_vars[name] = value.strip()
    except Exception as exc:
        logger.warning("Failed to load environment config: %s", exc)
        raise

    return env_vars


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    tree = ET.parse(config_path)
    root = tree.getroot()

    api_url = (root.findtext("api-url") or "").strip().rstrip("/")
    timeout = float(root.findtext("timeout", "10"))

    # Env
    env_node = root.find("env")
    env_file = (
        _resolve_path(config_path, env_node.text.strip())
        if env_node is not None and env_node.text
        else None
    )

    # Client-side feeds
    client_feeds = {
        category: list(urls) for category, urls in DEFAULT_CLIENT_FEEDS.items()
    }
    feeds_node = root.find("client-feeds")
    if feeds_node is not None and feeds_node.text:
        feeds_file = _resolve_path(config_path, feeds_node.text.strip())
        grouped = group_feeds_by_category(parse_feeds_config(feeds_file))
        if grouped:
            client_feeds = grouped

    # Fallback
    fb_node = root.find("fallback")
    fallback = FallbackConfig(timeout=timeout)
    if fb_node is not None:
        fallback.max_feeds = int(fb_node.findtext("max-feeds", "4"))
        fallback.per_source_limit = int(fb_node.findtext("per-source-limit", "5"))
        fallback.summary_length = int(fb_node.findtext("summary-length", "150"))
        fallback.concurrency = int(fb_node.findtext("concurrency", "4"))
        if fallback.max_feeds <= 0 or fallback.per_source_limit <= 0:
            raise ValueError("Fallback limits must be positive.")

    # Logging
    log_node = root.find("logging")
    logging_config = LoggingConfig()
    if log_node is not None:
        logging_config.level = log_node.findtext("level", "INFO")
        log_file = log_node.findtext("file")
        if log_file:
            logging_config.file = _resolve_path(config_path, log_file)

    # Database
    db_node = root.find("database")
    db_config = DatabaseConfig()
    if db_node is not None:
        db_config.enabled = db_node.findtext("enabled", "false").lower() == "true"
        db_config.connection_string = db_node.findtext("connection-string")

    return AppConfig(
        api_url=api_url,
        timeout=timeout,
        env_file=env_file,
        client_feeds=client_feeds,
        fallback=fallback,
        logging=logging_config,
        database=db_config,
    )


def resolve_api_url(config: AppConfig, override: Optional[str] = None) -> str:
    """Pick the backend URL: explicit override, then environment, then config."""
    value = override or os.environ.get(API_URL_ENV) or config.api_url or ""
    return value.strip().rstrip("/")
