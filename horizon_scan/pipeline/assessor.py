"""
Assessment pass: judge each pending article against every enabled topic.

For each (article, topic) pair without an Assessment the provider is called
once with the topic and the truncated article text. If any topic call fails
the whole article uses up one retry; pairs that already succeeded keep their
Assessment, so the next cycle only repeats the missing pairs.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

from sqlalchemy import Row, select
from sqlalchemy.orm import Session

from ..config import AssessmentConfig
from ..core.state import MAX_ASSESSMENT_RETRIES, ArticleStatus, after_assessment
from ..core.types import TopicSpec
from ..logging_utils import get_logger, log_event
from ..llm.prompts import truncate_article
from ..llm.providers.base import AssessmentProvider
from ..store.db import Store
from ..store.models import Article, Assessment, Topic, utc_now

logger = get_logger("assessor")


@dataclass
class AssessmentStats:
    articles: int = 0
    assessed: int = 0
    retried: int = 0
    failed: int = 0
    verdicts: int = 0


def assess_pending_articles(
    store: Store,
    provider: AssessmentProvider,
    cfg: AssessmentConfig,
    log: logging.Logger | None = None,
) -> AssessmentStats:
    """Assess pending articles that have extracted text and retries left.

    Args:
        store: Store holding articles, topics and assessments
        provider: Assessment provider used for every LLM call
        cfg: Truncation settings

    Returns:
        AssessmentStats for the pass
    """
    log = log or logger
    stats = AssessmentStats()

    with store.session_scope() as session:
        pending_ids = session.scalars(
            select(Article.id).where(
                Article.extracted_text.is_not(None),
                Article.status == ArticleStatus.PENDING,
                Article.assessment_retry_count < MAX_ASSESSMENT_RETRIES,
            )
        ).all()
        topics = session.execute(
            select(Topic.id, Topic.name, Topic.description).where(Topic.enabled.is_(True))
        ).all()

    if not pending_ids:
        log_event(log, "No articles pending assessment", event="assess_idle")
        return stats
    if not topics:
        log_event(log, "No active topics configured", event="assess_no_topics")
        return stats

    stats.articles = len(pending_ids)
    for article_id in pending_ids:
        try:
            with store.session_scope() as session:
                article = session.get(Article, article_id)
                if article is None:
                    continue
                any_failed = _assess_article(session, article, topics, provider, cfg, stats, log)

                transition = after_assessment(article.status, article.assessment_retry_count, any_failed)
                article.status = transition.status
                article.assessment_retry_count = transition.retry_count
                session.commit()
        except Exception as exc:  # noqa: BLE001
            log_event(
                log,
                "Assessment failed for article",
                level=logging.ERROR,
                event="assess_article_failed",
                article_id=article_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            continue

        if transition.status is ArticleStatus.ASSESSED:
            stats.assessed += 1
        elif transition.status is ArticleStatus.FAILED:
            stats.failed += 1
        else:
            stats.retried += 1
        if any_failed:
            log_event(
                log,
                "Article assessment retry count incremented",
                event="assess_retry",
                article_id=article_id,
                retry_count=transition.retry_count,
                status=transition.status.value,
            )

    log_event(
        log,
        "Assessment cycle complete",
        event="assess_complete",
        count=stats.articles,
        assessed=stats.assessed,
        retried=stats.retried,
        failed=stats.failed,
    )
    return stats


def _assess_article(
    session: Session,
    article: Article,
    topics: Sequence[Row],
    provider: AssessmentProvider,
    cfg: AssessmentConfig,
    stats: AssessmentStats,
    log: logging.Logger,
) -> bool:
    """Assess one article against every topic it lacks a verdict for.

    Returns True when any topic call or insert failed.
    """
    article_id = article.id
    text = truncate_article(article.extracted_text or "", cfg.max_article_length)
    any_failed = False

    for topic_id, topic_name, topic_description in topics:
        if _assessment_exists(session, article_id, topic_id):
            log_event(
                log,
                "Assessment already exists, skipping",
                level=logging.DEBUG,
                event="assess_skip_existing",
                article_id=article_id,
                topic_id=topic_id,
            )
            continue
        try:
            verdict = provider.assess(TopicSpec(name=topic_name, description=topic_description), text)
            session.add(
                Assessment(
                    article_id=article_id,
                    topic_id=topic_id,
                    relevant=verdict.relevant,
                    summary=verdict.summary,
                    tags=list(verdict.tags),
                    model_used=provider.model,
                    provider=provider.name,
                    assessed_at=utc_now(),
                )
            )
            session.commit()
        except Exception as exc:  # noqa: BLE001
            session.rollback()
            any_failed = True
            log_event(
                log,
                "Assessment failed for article-topic pair",
                level=logging.ERROR,
                event="assess_failed",
                article_id=article_id,
                topic_id=topic_id,
                error=f"{type(exc).__name__}: {exc}",
            )
            continue

        stats.verdicts += 1
        log_event(
            log,
            "Assessment completed",
            level=logging.DEBUG,
            event="assess_completed",
            article_id=article_id,
            topic_id=topic_id,
            relevant=verdict.relevant,
        )
    return any_failed


def _assessment_exists(session: Session, article_id: int, topic_id: int) -> bool:
    existing = session.scalar(
        select(Assessment.id).where(Assessment.article_id == article_id, Assessment.topic_id == topic_id)
    )
    return existing is not None
