"""Digest window query: relevant verdicts since the last successful digest."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.types import DigestArticle, DigestData, DigestTopicGroup
from ..store.models import DIGEST_SUCCESS, EPOCH, Article, Assessment, DigestRecord, Topic


def last_successful_digest_at(session: Session) -> datetime:
    """Return sent_at of the newest successful digest, or the epoch if none."""
    sent_at = session.scalar(
        select(DigestRecord.sent_at)
        .where(DigestRecord.status == DIGEST_SUCCESS)
        .order_by(DigestRecord.sent_at.desc())
        .limit(1)
    )
    return sent_at or EPOCH


def build_digest(session: Session) -> DigestData:
    """Collect relevant assessments made after the last successful digest.

    Articles are grouped by topic name in the order topics first appear.
    An empty result is valid; the caller decides whether to send.
    """
    since = last_successful_digest_at(session)
    rows = session.execute(
        select(
            Topic.name,
            Article.title,
            Article.url,
            Article.published_at,
            Assessment.summary,
            Assessment.tags,
        )
        .select_from(Assessment)
        .join(Article, Assessment.article_id == Article.id)
        .join(Topic, Assessment.topic_id == Topic.id)
        .where(Assessment.relevant.is_(True), Assessment.assessed_at > since)
        .order_by(Assessment.assessed_at, Assessment.id)
    ).all()

    groups: dict[str, list[DigestArticle]] = {}
    for topic_name, title, url, published_at, summary, tags in rows:
        groups.setdefault(topic_name, []).append(
            DigestArticle(
                title=title,
                url=url,
                published_at=published_at,
                summary=summary,
                tags=list(tags or []),
            )
        )

    return DigestData(
        topic_groups=[DigestTopicGroup(topic_name=name, articles=items) for name, items in groups.items()],
        total_article_count=len(rows),
    )
