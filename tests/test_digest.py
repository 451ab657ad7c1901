"""Tests for digest windowing, the digest cycle and Mailgun delivery."""

from datetime import datetime, timedelta

import httpx
from sqlalchemy import select

from horizon_scan.config import DigestConfig, MailgunConfig
from horizon_scan.core.types import SendResult
from horizon_scan.digest import MailgunSender, build_digest, run_digest_cycle
from horizon_scan.store import DIGEST_FAILED, DIGEST_SUCCESS, DigestRecord, utc_now

RECIPIENT = DigestConfig(recipient="team@example.com")


class _RecordingSender:
    def __init__(self, results):
        self.results = list(results)
        self.calls = []

    def __call__(self, recipient, subject, html):
        self.calls.append((recipient, subject, html))
        return self.results.pop(0)


def _add_digest(store, sent_at, status=DIGEST_SUCCESS, count=0):
    with store.session_scope() as session:
        session.add(DigestRecord(sent_at=sent_at, article_count=count, recipient="team@example.com", status=status))
        session.commit()


def _digests(store):
    with store.session_scope() as session:
        return [(d.status, d.article_count) for d in session.scalars(select(DigestRecord).order_by(DigestRecord.id))]


def test_build_digest_only_includes_verdicts_after_last_success(store, make_feed, make_article, make_topic, make_assessment):
    feed_id = make_feed()
    topic_id = make_topic("AI")
    t = utc_now() - timedelta(hours=1)
    _add_digest(store, t)
    old = make_article(feed_id, "old")
    new = make_article(feed_id, "new", title="New one")
    make_assessment(old, topic_id, t - timedelta(minutes=1))
    make_assessment(new, topic_id, t + timedelta(minutes=1), summary="S", tags=["x"])

    with store.session_scope() as session:
        data = build_digest(session)

    assert data.total_article_count == 1
    assert [g.topic_name for g in data.topic_groups] == ["AI"]
    article = data.topic_groups[0].articles[0]
    assert article.title == "New one"
    assert article.summary == "S"
    assert article.tags == ["x"]


def test_build_digest_ignores_failed_digests_and_irrelevant_verdicts(
    store, make_feed, make_article, make_topic, make_assessment
):
    feed_id = make_feed()
    topic_id = make_topic("AI")
    t = utc_now() - timedelta(hours=1)
    _add_digest(store, t + timedelta(minutes=30), status=DIGEST_FAILED)
    relevant = make_article(feed_id, "r")
    irrelevant = make_article(feed_id, "i")
    make_assessment(relevant, topic_id, t)
    make_assessment(irrelevant, topic_id, t, relevant=False)

    with store.session_scope() as session:
        data = build_digest(session)

    assert data.total_article_count == 1


def test_build_digest_groups_by_topic_in_first_seen_order(store, make_feed, make_article, make_topic, make_assessment):
    feed_id = make_feed()
    bio = make_topic("Biotech", "Biotechnology")
    ai = make_topic("AI")
    base = datetime(2024, 1, 1)
    a1 = make_article(feed_id, "a1")
    a2 = make_article(feed_id, "a2")
    make_assessment(a1, bio, base)
    make_assessment(a1, ai, base + timedelta(seconds=1))
    make_assessment(a2, bio, base + timedelta(seconds=2))

    with store.session_scope() as session:
        data = build_digest(session)

    assert [(g.topic_name, len(g.articles)) for g in data.topic_groups] == [("Biotech", 2), ("AI", 1)]
    assert data.total_article_count == 3


def test_empty_digest_records_success_without_sending(store):
    sender = _RecordingSender([])

    with store.session_scope() as session:
        record = run_digest_cycle(session, RECIPIENT, sender)

    assert sender.calls == []
    assert (record.status, record.article_count) == (DIGEST_SUCCESS, 0)
    assert _digests(store) == [(DIGEST_SUCCESS, 0)]


def test_digest_sends_subject_and_html(store, make_feed, make_article, make_topic, make_assessment):
    feed_id = make_feed()
    topic_id = make_topic("AI")
    article_id = make_article(feed_id, "a1", title="Big news")
    make_assessment(article_id, topic_id, datetime(2024, 1, 1))
    sender = _RecordingSender([SendResult.ok("msg-1")])

    with store.session_scope() as session:
        run_digest_cycle(session, RECIPIENT, sender)

    recipient, subject, html = sender.calls[0]
    assert recipient == "team@example.com"
    assert subject.startswith("Horizon Scan: 1 article - ")
    assert "Big news" in html
    assert _digests(store) == [(DIGEST_SUCCESS, 1)]


def test_send_failure_then_recovery_resends_same_article(store, make_feed, make_article, make_topic, make_assessment):
    feed_id = make_feed()
    topic_id = make_topic("AI")
    article_id = make_article(feed_id, "a1", title="Big news")
    make_assessment(article_id, topic_id, datetime(2024, 1, 1))
    sender = _RecordingSender([SendResult.failed("HTTP 500"), SendResult.ok("msg-2")])

    with store.session_scope() as session:
        run_digest_cycle(session, RECIPIENT, sender)
    with store.session_scope() as session:
        run_digest_cycle(session, RECIPIENT, sender)

    assert _digests(store) == [(DIGEST_FAILED, 1), (DIGEST_SUCCESS, 1)]
    assert "Big news" in sender.calls[1][2]


def test_mailgun_sender_posts_form_with_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.content.decode()
        return httpx.Response(200, json={"id": "<123@mg.example.com>", "message": "Queued"})

    sender = MailgunSender("key-1", "mg.example.com", MailgunConfig(), transport=httpx.MockTransport(handler))
    result = sender("team@example.com", "Subject", "<p>hi</p>")

    assert result == SendResult(success=True, message_id="<123@mg.example.com>")
    assert seen["url"] == "https://api.mailgun.net/v3/mg.example.com/messages"
    assert seen["auth"].startswith("Basic ")
    assert "to=team%40example.com" in seen["body"]


def test_mailgun_sender_missing_id_is_unknown():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"message": "Queued"}))
    result = MailgunSender("key", "mg.example.com", transport=transport)("a@b.c", "s", "h")
    assert result.message_id == "unknown"


def test_mailgun_sender_returns_failure_instead_of_raising():
    transport = httpx.MockTransport(lambda request: httpx.Response(401, text="Forbidden"))
    result = MailgunSender("bad", "mg.example.com", transport=transport)("a@b.c", "s", "h")

    assert result.success is False
    assert result.error.startswith("HTTP 401")


def test_mailgun_sender_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    result = MailgunSender("key", "mg.example.com", transport=httpx.MockTransport(handler))("a@b.c", "s", "h")
    assert result.success is False
    assert "ConnectError" in result.error
