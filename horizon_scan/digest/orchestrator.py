"""
Digest cycle: build the window, send it, record the outcome.

A digest with nothing in it still records a successful run so the window
advances. A failed send is recorded as failed and the window stays open, so
the same articles go out on the next successful run.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Callable

from sqlalchemy.orm import Session

from ..config import DigestConfig
from ..core.types import SendResult
from ..logging_utils import get_logger, log_event
from ..store.models import DIGEST_FAILED, DIGEST_SUCCESS, DigestRecord, utc_now
from .builder import build_digest
from .renderer import digest_subject, render_digest_html

logger = get_logger("digest")

SendDigest = Callable[[str, str, str], SendResult]


def run_digest_cycle(
    session: Session,
    cfg: DigestConfig,
    send_digest: SendDigest,
    log: logging.Logger | None = None,
) -> DigestRecord:
    """Run one digest cycle and return the DigestRecord it wrote."""
    log = log or logger
    started_at = utc_now()
    data = build_digest(session)

    if data.total_article_count == 0:
        log_event(log, "No relevant articles since last digest", event="digest_empty")
        return _record(session, started_at, 0, cfg.recipient, DIGEST_SUCCESS)

    html = render_digest_html(data, generated_at=started_at)
    subject = digest_subject(data, sent_at=started_at)
    result = send_digest(cfg.recipient, subject, html)
    status = DIGEST_SUCCESS if result.success else DIGEST_FAILED

    log_event(
        log,
        "Digest cycle complete",
        level=logging.INFO if result.success else logging.WARNING,
        event="digest_complete",
        status=status,
        article_count=data.total_article_count,
        topic_count=len(data.topic_groups),
        message_id=result.message_id,
        error=result.error,
    )
    return _record(session, started_at, data.total_article_count, cfg.recipient, status)


def _record(session: Session, sent_at: datetime, article_count: int, recipient: str, status: str) -> DigestRecord:
    record = DigestRecord(sent_at=sent_at, article_count=article_count, recipient=recipient, status=status)
    session.add(record)
    session.commit()
    return record
