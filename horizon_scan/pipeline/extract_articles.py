"""Extraction pass: turn fetched raw HTML into article text and metadata."""

from __future__ import annotations

import logging

from sqlalchemy import select

from ..core.state import ArticleStatus
from ..logging_utils import get_logger, log_event
from ..store.db import Store
from ..store.models import Article, Feed
from .extractor import extract_content

logger = get_logger("extract")

JSON_LD_METADATA_KEY = "jsonLd"


def extract_pending_articles(store: Store, log: logging.Logger | None = None) -> int:
    """Extract every pending article that has raw HTML but no text yet.

    Structured data is merged into the article's metadata under ``jsonLd``;
    RSS-sourced keys are left untouched. Each article is committed on its own
    and a failure on one article is logged and skipped.

    Returns:
        Number of articles extracted
    """
    log = log or logger
    with store.session_scope() as session:
        pending_ids = session.scalars(
            select(Article.id).where(
                Article.raw_html.is_not(None),
                Article.extracted_text.is_(None),
                Article.status == ArticleStatus.PENDING,
            )
        ).all()

    if not pending_ids:
        log_event(log, "No articles pending extraction", event="extract_idle")
        return 0

    extracted = 0
    for article_id in pending_ids:
        try:
            with store.session_scope() as session:
                article = session.get(Article, article_id)
                feed = session.get(Feed, article.feed_id) if article is not None else None
                if article is None or feed is None:
                    log_event(
                        log,
                        "Feed not found for article",
                        level=logging.WARNING,
                        event="extract_missing_feed",
                        article_id=article_id,
                    )
                    continue

                result = extract_content(article.raw_html or "", feed.extractor_config or {}, log)
                metadata = dict(article.metadata_ or {})
                metadata[JSON_LD_METADATA_KEY] = list(result.structured_data)

                article.extracted_text = result.extracted_text
                article.metadata_ = metadata
                session.commit()
                extracted += 1
                log_event(
                    log,
                    "Article extracted",
                    level=logging.DEBUG,
                    event="article_extracted",
                    article_id=article_id,
                    text_length=len(result.extracted_text),
                )
        except Exception as exc:  # noqa: BLE001
            log_event(
                log,
                "Extraction failed for article",
                level=logging.ERROR,
                event="extract_failed",
                article_id=article_id,
                error=f"{type(exc).__name__}: {exc}",
            )

    log_event(log, "Extraction cycle complete", event="extract_complete", count=len(pending_ids), extracted=extracted)
    return extracted
