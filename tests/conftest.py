from __future__ import annotations

from datetime import datetime

import pytest

from horizon_scan.config import AppConfig, DigestConfig, FeedConfig, TopicConfig
from horizon_scan.core.state import ArticleStatus
from horizon_scan.store import Article, Assessment, Feed, Store, Topic


@pytest.fixture
def store(tmp_path):
    db = Store.from_path(str(tmp_path / "horizon.db"))
    db.create_schema()
    yield db
    db.close()


@pytest.fixture
def app_config() -> AppConfig:
    cfg = AppConfig(
        feeds=[FeedConfig(name="Example", url="https://feeds.example.com/rss.xml")],
        topics=[TopicConfig(name="AI", description="Artificial intelligence developments")],
        digest=DigestConfig(recipient="team@example.com"),
    )
    cfg.extraction.per_domain_delay_ms = 0
    return cfg


@pytest.fixture
def make_feed(store):
    def _make(name: str = "Example", url: str = "https://feeds.example.com/rss.xml", **extractor) -> int:
        extractor_config = {"body_selector": "article", "json_ld": False, "metadata_selectors": None}
        extractor_config.update(extractor)
        with store.session_scope() as session:
            feed = Feed(name=name, url=url, extractor_config=extractor_config)
            session.add(feed)
            session.commit()
            return feed.id

    return _make


@pytest.fixture
def make_article(store):
    def _make(feed_id: int, guid: str = "a1", **fields) -> int:
        values = {
            "title": f"Article {guid}",
            "url": f"https://news.example.com/{guid}",
            "status": ArticleStatus.PENDING,
            "metadata_": {},
        }
        values.update(fields)
        with store.session_scope() as session:
            article = Article(feed_id=feed_id, guid=guid, **values)
            session.add(article)
            session.commit()
            return article.id

    return _make


@pytest.fixture
def make_topic(store):
    def _make(name: str = "AI", description: str = "Artificial intelligence developments", enabled: bool = True) -> int:
        with store.session_scope() as session:
            topic = Topic(name=name, description=description, enabled=enabled)
            session.add(topic)
            session.commit()
            return topic.id

    return _make


@pytest.fixture
def make_assessment(store):
    def _make(
        article_id: int,
        topic_id: int,
        assessed_at: datetime,
        relevant: bool = True,
        summary: str = "Summary",
        tags: list[str] | None = None,
    ) -> int:
        with store.session_scope() as session:
            assessment = Assessment(
                article_id=article_id,
                topic_id=topic_id,
                relevant=relevant,
                summary=summary,
                tags=tags or [],
                model_used="test-model",
                provider="test",
                assessed_at=assessed_at,
            )
            session.add(assessment)
            session.commit()
            return assessment.id

    return _make
