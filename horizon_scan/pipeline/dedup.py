"""
Deduplication of polled feed items against the store.

An item is new when no Article with the same ``guid`` exists. New items are
inserted as pending articles; known ones are counted as skipped. Running the
same batch twice inserts nothing the second time.
"""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.state import ArticleStatus
from ..core.types import DedupResult, ParsedItem
from ..logging_utils import get_logger, log_event
from ..store.models import Article

logger = get_logger("dedup")


def deduplicate_and_store(
    session: Session,
    feed_id: int,
    feed_name: str,
    items: Iterable[ParsedItem],
    log: logging.Logger | None = None,
) -> DedupResult:
    """Insert items whose guid is not yet stored.

    Args:
        session: Open database session
        feed_id: Owning feed id for new articles
        feed_name: Feed name used in logs and the result
        items: Normalized items from the poller

    Returns:
        DedupResult with new and skipped counts
    """
    log = log or logger
    new_count = 0
    skipped_count = 0

    for item in items:
        existing = session.scalar(select(Article.id).where(Article.guid == item.guid))
        if existing is not None:
            skipped_count += 1
            continue

        session.add(
            Article(
                feed_id=feed_id,
                guid=item.guid,
                title=item.title,
                url=item.url,
                published_at=item.published_at,
                metadata_=dict(item.metadata),
                status=ArticleStatus.PENDING,
                fetch_retry_count=0,
                assessment_retry_count=0,
            )
        )
        # flush so a guid repeated later in the same batch is seen as existing
        session.flush()
        new_count += 1

    session.commit()
    log_event(
        log,
        "Dedup complete",
        event="dedup_complete",
        feed_name=feed_name,
        new_count=new_count,
        skipped_count=skipped_count,
    )
    return DedupResult(feed_name=feed_name, new_count=new_count, skipped_count=skipped_count)
