"""Tests for the throttled article fetcher."""

import asyncio

import httpx
import pytest

from horizon_scan.config import ExtractionConfig
from horizon_scan.core.state import ArticleStatus
from horizon_scan.pipeline.fetcher import HostThrottle, fetch_pending_articles
from horizon_scan.store import Article

NO_DELAY = ExtractionConfig(max_concurrency=2, per_domain_delay_ms=0)


def _transport(pages: dict[str, httpx.Response]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        return pages.get(str(request.url), httpx.Response(404))

    return httpx.MockTransport(handler)


def test_successful_fetch_stores_raw_html(store, make_feed, make_article):
    feed_id = make_feed()
    article_id = make_article(feed_id, "a1", url="https://news.example.com/a1")
    transport = _transport({"https://news.example.com/a1": httpx.Response(200, html="<article>Body</article>")})

    stats = fetch_pending_articles(store, NO_DELAY, transport=transport)

    assert (stats.total, stats.succeeded, stats.failed) == (1, 1, 0)
    with store.session_scope() as session:
        article = session.get(Article, article_id)
        assert article.raw_html == "<article>Body</article>"
        assert article.fetched_at is not None
        assert article.status is ArticleStatus.PENDING
        assert article.fetch_retry_count == 0


def test_failed_fetch_increments_retry_count(store, make_feed, make_article):
    feed_id = make_feed()
    article_id = make_article(feed_id, "a1", url="https://news.example.com/missing")

    stats = fetch_pending_articles(store, NO_DELAY, transport=_transport({}))

    assert stats.failed == 1
    with store.session_scope() as session:
        article = session.get(Article, article_id)
        assert article.raw_html is None
        assert article.fetch_retry_count == 1
        assert article.status is ArticleStatus.PENDING


def test_third_failure_marks_article_failed(store, make_feed, make_article):
    feed_id = make_feed()
    article_id = make_article(feed_id, "a1", url="https://news.example.com/missing", fetch_retry_count=2)

    fetch_pending_articles(store, NO_DELAY, transport=_transport({}))

    with store.session_scope() as session:
        article = session.get(Article, article_id)
        assert article.fetch_retry_count == 3
        assert article.status is ArticleStatus.FAILED


def test_network_error_is_recorded_not_raised(store, make_feed, make_article):
    feed_id = make_feed()
    article_id = make_article(feed_id, "a1")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    stats = fetch_pending_articles(store, NO_DELAY, transport=httpx.MockTransport(handler))

    assert stats.failed == 1
    with store.session_scope() as session:
        assert session.get(Article, article_id).fetch_retry_count == 1


def test_one_failure_does_not_stop_batch(store, make_feed, make_article):
    feed_id = make_feed()
    ok_id = make_article(feed_id, "ok", url="https://a.example.com/ok")
    bad_id = make_article(feed_id, "bad", url="https://b.example.com/bad")
    transport = _transport({"https://a.example.com/ok": httpx.Response(200, html="<p>ok</p>")})

    stats = fetch_pending_articles(store, NO_DELAY, transport=transport)

    assert (stats.succeeded, stats.failed) == (1, 1)
    with store.session_scope() as session:
        assert session.get(Article, ok_id).raw_html == "<p>ok</p>"
        assert session.get(Article, bad_id).fetch_retry_count == 1


def test_skips_fetched_exhausted_and_terminal_articles(store, make_feed, make_article):
    feed_id = make_feed()
    make_article(feed_id, "done", raw_html="<p>x</p>")
    make_article(feed_id, "exhausted", fetch_retry_count=3)
    make_article(feed_id, "assessed", status=ArticleStatus.ASSESSED)
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, html="<p>x</p>")

    stats = fetch_pending_articles(store, NO_DELAY, transport=httpx.MockTransport(handler))

    assert stats.total == 0
    assert requested == []


class _FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


def test_host_throttle_spaces_requests_to_same_host():
    clock = _FakeClock()
    throttle = HostThrottle(1.0, clock=clock, sleep=clock.sleep)

    async def scenario():
        return [
            await throttle.wait("news.example.com"),
            await throttle.wait("news.example.com"),
            await throttle.wait("other.example.com"),
            await throttle.wait("news.example.com"),
        ]

    waits = asyncio.run(scenario())

    assert waits == [0.0, 1.0, 0.0, 2.0]
    assert clock.sleeps == [1.0, 2.0]


def test_host_throttle_no_wait_after_delay_elapsed():
    clock = _FakeClock()
    throttle = HostThrottle(1.0, clock=clock, sleep=clock.sleep)

    async def scenario():
        await throttle.wait("news.example.com")
        clock.now += 5.0
        return await throttle.wait("news.example.com")

    assert asyncio.run(scenario()) == 0.0
    assert clock.sleeps == []


@pytest.mark.parametrize("limit", [1, 2])
def test_concurrent_requests_never_exceed_max_concurrency(store, make_feed, make_article, limit):
    feed_id = make_feed()
    for idx in range(5):
        make_article(feed_id, f"a{idx}", url=f"https://site{idx}.example.com/a{idx}")
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return httpx.Response(200, html="<p>x</p>")

    cfg = ExtractionConfig(max_concurrency=limit, per_domain_delay_ms=0)
    stats = fetch_pending_articles(store, cfg, transport=httpx.MockTransport(handler))

    assert stats.succeeded == 5
    assert peak == limit
