"""Seed feeds and topics from configuration on first run."""

from __future__ import annotations

from dataclasses import asdict
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..config import AppConfig
from ..logging_utils import get_logger, log_event
from .models import Feed, Topic


def seed_database(session: Session, cfg: AppConfig, logger: logging.Logger | None = None) -> tuple[int, int]:
    """Insert configured feeds and topics into empty tables.

    Each table is seeded only while it is empty, so after the first run the
    database (and whatever edits were made to it) is the source of truth.

    Returns:
        Tuple of (feeds inserted, topics inserted)
    """
    logger = logger or get_logger("seed")
    feeds_added = 0
    topics_added = 0

    existing_feeds = session.scalar(select(func.count()).select_from(Feed)) or 0
    if existing_feeds == 0:
        log_event(logger, "Seeding feeds from config", event="seed_feeds", count=len(cfg.feeds))
        for feed in cfg.feeds:
            session.add(
                Feed(
                    name=feed.name,
                    url=feed.url,
                    extractor_config=asdict(feed.extractor_config),
                    poll_interval_minutes=feed.poll_interval_minutes,
                    enabled=feed.enabled,
                )
            )
            feeds_added += 1
    else:
        log_event(logger, "Feeds already exist, skipping seed", event="seed_feeds_skipped", existing=existing_feeds)

    existing_topics = session.scalar(select(func.count()).select_from(Topic)) or 0
    if existing_topics == 0:
        log_event(logger, "Seeding topics from config", event="seed_topics", count=len(cfg.topics))
        for topic in cfg.topics:
            session.add(Topic(name=topic.name, description=topic.description, enabled=topic.enabled))
            topics_added += 1
    else:
        log_event(logger, "Topics already exist, skipping seed", event="seed_topics_skipped", existing=existing_topics)

    session.commit()
    return feeds_added, topics_added
