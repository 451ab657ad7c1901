"""
Ingestion cycle: poll -> dedup -> fetch -> extract -> assess.

Each feed is polled and deduplicated on its own; a broken feed is logged and
skipped. The later stages run even when an earlier stage fails, operating on
whatever work already reached them in the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable

import httpx
from sqlalchemy import select

from ..config import AppConfig
from ..core.state import CycleStage
from ..logging_utils import get_logger, log_event
from ..llm.providers.base import AssessmentProvider
from ..store.db import Store
from ..store.models import Feed, utc_now
from .assessor import assess_pending_articles
from .dedup import deduplicate_and_store
from .extract_articles import extract_pending_articles
from .fetcher import fetch_pending_articles
from .poller import FeedParser, poll_feed

logger = get_logger("cycle")


@dataclass
class CycleReport:
    """Summary of one ingestion cycle."""
    feeds_polled: int = 0
    feed_errors: int = 0
    new_articles: int = 0
    skipped_articles: int = 0
    fetched: int = 0
    fetch_failed: int = 0
    extracted: int = 0
    assessed: int = 0
    assessment_skipped: bool = False
    stage_errors: dict[str, str] = field(default_factory=dict)


class PollCycle:
    """Runs ingestion cycles against a store.

    Attributes:
        stage: Stage the cycle is currently in (IDLE between cycles)
    """

    def __init__(
        self,
        store: Store,
        cfg: AppConfig,
        provider: AssessmentProvider | None,
        parser: FeedParser | None = None,
        feed_client: httpx.Client | None = None,
        fetch_transport: httpx.AsyncBaseTransport | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.store = store
        self.cfg = cfg
        self.provider = provider
        self.parser = parser or FeedParser(cfg.poller.custom_fields)
        self.feed_client = feed_client
        self.fetch_transport = fetch_transport
        self.log = log or logger
        self.stage = CycleStage.IDLE

    def run(self) -> CycleReport:
        report = CycleReport()
        log_event(self.log, "Poll cycle starting", event="cycle_start")
        try:
            self._run_stage(CycleStage.POLLING, report, self._poll_feeds)
            self._run_stage(CycleStage.FETCHING, report, self._fetch)
            self._run_stage(CycleStage.EXTRACTING, report, self._extract)
            if self.provider is None:
                report.assessment_skipped = True
                log_event(self.log, "No LLM provider configured, skipping assessment", event="assess_disabled")
            else:
                self._run_stage(CycleStage.ASSESSING, report, self._assess)
        finally:
            self.stage = CycleStage.IDLE
        log_event(
            self.log,
            "Poll cycle complete",
            event="cycle_complete",
            feeds_polled=report.feeds_polled,
            feed_errors=report.feed_errors,
            new_articles=report.new_articles,
            fetched=report.fetched,
            extracted=report.extracted,
            assessed=report.assessed,
        )
        return report

    def _run_stage(self, stage: CycleStage, report: CycleReport, fn: Callable[[CycleReport], Any]) -> None:
        self.stage = stage
        try:
            fn(report)
        except Exception as exc:  # noqa: BLE001
            message = f"{type(exc).__name__}: {exc}"
            report.stage_errors[stage.value] = message
            self.log.exception("Stage %s failed", stage.value, extra={"event": "stage_failed", "stage": stage.value})

    def _poll_feeds(self, report: CycleReport) -> None:
        with self.store.session_scope() as session:
            feeds = session.execute(select(Feed.id, Feed.name, Feed.url).where(Feed.enabled.is_(True))).all()

        for feed_id, feed_name, feed_url in feeds:
            try:
                result = poll_feed(
                    feed_name,
                    feed_url,
                    self.parser,
                    client=self.feed_client,
                    timeout=self.cfg.poller.timeout_seconds,
                    log=self.log,
                )
                if result.error:
                    report.feed_errors += 1
                    log_event(
                        self.log,
                        "Feed poll returned error, skipping dedup",
                        level=logging.WARNING,
                        event="feed_poll_skipped",
                        feed_name=feed_name,
                        error=result.error,
                    )
                    continue

                with self.store.session_scope() as session:
                    dedup = deduplicate_and_store(session, feed_id, feed_name, result.items, log=self.log)
                    feed = session.get(Feed, feed_id)
                    if feed is not None:
                        feed.last_polled_at = utc_now()
                        session.commit()
                report.feeds_polled += 1
                report.new_articles += dedup.new_count
                report.skipped_articles += dedup.skipped_count
            except Exception as exc:  # noqa: BLE001
                report.feed_errors += 1
                log_event(
                    self.log,
                    "Unexpected error during feed processing",
                    level=logging.ERROR,
                    event="feed_error",
                    feed_name=feed_name,
                    feed_url=feed_url,
                    error=f"{type(exc).__name__}: {exc}",
                )

    def _fetch(self, report: CycleReport) -> None:
        stats = fetch_pending_articles(self.store, self.cfg.extraction, transport=self.fetch_transport, log=self.log)
        report.fetched = stats.succeeded
        report.fetch_failed = stats.failed

    def _extract(self, report: CycleReport) -> None:
        report.extracted = extract_pending_articles(self.store, log=self.log)

    def _assess(self, report: CycleReport) -> None:
        stats = assess_pending_articles(self.store, self.provider, self.cfg.assessment, log=self.log)
        report.assessed = stats.assessed


def run_poll_cycle(
    store: Store,
    cfg: AppConfig,
    provider: AssessmentProvider | None,
    parser: FeedParser | None = None,
    **kwargs: Any,
) -> CycleReport:
    """Run one ingestion cycle and return its report."""
    return PollCycle(store, cfg, provider, parser=parser, **kwargs).run()
