"""
Core data types passed between pipeline stages.

This module defines the value objects exchanged by the stages:
- ParsedItem / PollResult: Normalized RSS items returned by the poller
- DedupResult: Outcome of storing a batch of items
- ExtractionResult: Body text and structured data pulled from raw HTML
- Verdict: The relevance judgement returned by an assessment provider
- SendResult: Outcome of a digest email send
- DigestArticle / DigestTopicGroup / DigestData: Digest contents
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class ParsedItem:
    """A single feed item after normalization.

    Attributes:
        guid: Deduplication key (item id, then link, then empty string)
        title: Item title, or None when the feed omits it
        url: Item link
        published_at: Publish timestamp (naive UTC), or None
        metadata: Declared custom RSS fields present on this item
    """
    guid: str
    title: str | None
    url: str
    published_at: datetime | None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PollResult:
    """Result of polling one feed. Either items or error is meaningful."""
    feed_name: str
    items: list[ParsedItem]
    error: str | None = None


@dataclass(frozen=True)
class DedupResult:
    feed_name: str
    new_count: int
    skipped_count: int


@dataclass(frozen=True)
class ExtractionResult:
    """Output of the extractor.

    Attributes:
        extracted_text: Body text joined with blank lines ("" when nothing matched)
        structured_data: JSON-LD objects and tagged metadata-selector entries
    """
    extracted_text: str
    structured_data: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class Verdict:
    """Relevance verdict for one (article, topic) pair."""
    relevant: bool
    summary: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class TopicSpec:
    """The topic fields an assessment provider needs."""
    name: str
    description: str


@dataclass(frozen=True)
class SendResult:
    """Outcome of sending a digest. Senders return this instead of raising."""
    success: bool
    message_id: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, message_id: str) -> SendResult:
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error: str) -> SendResult:
        return cls(success=False, error=error)


@dataclass(frozen=True)
class DigestArticle:
    title: str | None
    url: str
    published_at: datetime | None
    summary: str | None
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DigestTopicGroup:
    topic_name: str
    articles: list[DigestArticle] = field(default_factory=list)


@dataclass(frozen=True)
class DigestData:
    topic_groups: list[DigestTopicGroup] = field(default_factory=list)
    total_article_count: int = 0
