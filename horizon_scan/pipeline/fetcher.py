"""
Article HTML fetching with bounded concurrency and per-host throttling.

Pending articles without raw HTML are fetched through an asyncio worker pool
whose width is ``extraction.max_concurrency``. Before each request the
HostThrottle enforces ``extraction.per_domain_delay_ms`` between requests to
the same host. Each article's outcome is written in its own transaction;
one failure never stops the rest of the batch.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import time
from typing import Awaitable, Callable
from urllib.parse import urlparse

import httpx
from sqlalchemy import select

from ..config import ExtractionConfig
from ..core.state import MAX_FETCH_RETRIES, ArticleStatus, after_fetch_failure, after_fetch_success
from ..logging_utils import get_logger, log_event
from ..store.db import Store
from ..store.models import Article, utc_now

logger = get_logger("fetcher")

FETCH_TIMEOUT_SECONDS = 15.0
FETCH_HEADERS = {
    "User-Agent": "HorizonScan/1.0 (RSS article fetcher)",
    "Accept": "text/html,application/xhtml+xml",
}


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    Either text will be populated (success) or error will be populated (failure),
    but never both. status_code may be None for network-level failures.
    """
    url: str
    status_code: int | None
    text: str | None
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FetchStats:
    """Counts collected during one fetch pass."""
    total: int = 0
    succeeded: int = 0
    failed: int = 0


class HostThrottle:
    """Enforces a minimum delay between requests to the same host.

    The host -> next-allowed-time map is read and updated under a lock, so
    concurrent tasks targeting one host each reserve a distinct slot. The
    wait itself happens outside the lock and does not hold up other hosts.
    """

    def __init__(
        self,
        delay_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.delay_seconds = delay_seconds
        self._clock = clock
        self._sleep = sleep
        self._last_request: dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def wait(self, host: str) -> float:
        """Wait until a request to host is allowed; return the seconds waited."""
        async with self._lock:
            now = self._clock()
            last = self._last_request.get(host)
            delay = 0.0 if last is None else max(0.0, last + self.delay_seconds - now)
            self._last_request[host] = now + delay
        if delay > 0:
            await self._sleep(delay)
        return delay


async def fetch_article(client: httpx.AsyncClient, url: str) -> FetchResult:
    """GET one article page. Never raises; failures are returned as FetchResult.error."""
    try:
        resp = await client.get(url)
    except Exception as exc:  # noqa: BLE001
        return FetchResult(url=url, status_code=None, text=None, error=f"{type(exc).__name__}: {exc}")
    if not resp.is_success:
        return FetchResult(
            url=url,
            status_code=resp.status_code,
            text=None,
            error=f"HTTP {resp.status_code}: {resp.reason_phrase}",
        )
    return FetchResult(url=url, status_code=resp.status_code, text=resp.text, error=None)


def fetch_pending_articles(
    store: Store,
    cfg: ExtractionConfig,
    transport: httpx.AsyncBaseTransport | None = None,
    log: logging.Logger | None = None,
) -> FetchStats:
    """Synchronous entry point for the fetch stage."""
    return asyncio.run(fetch_pending_articles_async(store, cfg, transport=transport, log=log))


async def fetch_pending_articles_async(
    store: Store,
    cfg: ExtractionConfig,
    transport: httpx.AsyncBaseTransport | None = None,
    throttle: HostThrottle | None = None,
    log: logging.Logger | None = None,
) -> FetchStats:
    """Fetch every pending article that has no raw HTML and retries left.

    Args:
        store: Store to read pending articles from and write results to
        cfg: Concurrency and per-host delay settings
        transport: Optional httpx transport (tests pass a MockTransport)
        throttle: Optional HostThrottle (defaults to one built from cfg)

    Returns:
        FetchStats for the pass
    """
    log = log or logger
    with store.session_scope() as session:
        pending = session.execute(
            select(Article.id, Article.url).where(
                Article.status == ArticleStatus.PENDING,
                Article.raw_html.is_(None),
                Article.fetch_retry_count < MAX_FETCH_RETRIES,
            )
        ).all()

    stats = FetchStats(total=len(pending))
    if not pending:
        log_event(log, "No articles pending fetch", event="fetch_idle")
        return stats

    throttle = throttle or HostThrottle(cfg.per_domain_delay_ms / 1000.0)
    semaphore = asyncio.Semaphore(cfg.max_concurrency)

    async with httpx.AsyncClient(
        timeout=FETCH_TIMEOUT_SECONDS,
        headers=FETCH_HEADERS,
        follow_redirects=True,
        transport=transport,
    ) as client:

        async def _fetch_one(article_id: int, url: str) -> bool:
            async with semaphore:
                await throttle.wait(urlparse(url).hostname or "")
                log_event(log, "Fetch start", level=logging.DEBUG, event="fetch_start", article_id=article_id, url=url)
                result = await fetch_article(client, url)
            await asyncio.to_thread(_record_result, store, article_id, result, log)
            return result.ok

        tasks = [asyncio.create_task(_fetch_one(row.id, row.url)) for row in pending]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    for row, outcome in zip(pending, outcomes):
        if outcome is True:
            stats.succeeded += 1
            continue
        stats.failed += 1
        if isinstance(outcome, BaseException):
            log_event(
                log,
                "Fetch task crashed",
                level=logging.ERROR,
                event="fetch_task_error",
                article_id=row.id,
                error=f"{type(outcome).__name__}: {outcome}",
            )

    log_event(
        log,
        "Article fetch cycle complete",
        event="fetch_complete",
        total=stats.total,
        succeeded=stats.succeeded,
        failed=stats.failed,
    )
    return stats


def _record_result(store: Store, article_id: int, result: FetchResult, log: logging.Logger) -> None:
    with store.session_scope() as session:
        article = session.get(Article, article_id)
        if article is None:
            return
        if result.ok:
            transition = after_fetch_success(article.status, article.fetch_retry_count)
            article.status = transition.status
            article.raw_html = result.text
            article.fetched_at = utc_now()
        else:
            transition = after_fetch_failure(article.status, article.fetch_retry_count)
            article.fetch_retry_count = transition.retry_count
            article.status = transition.status
            log_event(
                log,
                "Article fetch failed",
                level=logging.WARNING,
                event="fetch_failed",
                article_id=article_id,
                url=result.url,
                status_code=result.status_code,
                error=result.error,
                retry_count=transition.retry_count,
                status=transition.status.value,
            )
        session.commit()
