"""
Core domain types and article lifecycle.

This package contains value objects and state transitions that are
independent of any specific pipeline stage or storage backend.
"""

from .state import (
    ArticleStatus,
    CycleStage,
    Transition,
    after_assessment,
    after_fetch_failure,
    after_fetch_success,
)
from .types import (
    DedupResult,
    DigestArticle,
    DigestData,
    DigestTopicGroup,
    ExtractionResult,
    ParsedItem,
    PollResult,
    SendResult,
    TopicSpec,
    Verdict,
)

__all__ = [
    "ArticleStatus",
    "CycleStage",
    "Transition",
    "after_assessment",
    "after_fetch_failure",
    "after_fetch_success",
    "DedupResult",
    "DigestArticle",
    "DigestData",
    "DigestTopicGroup",
    "ExtractionResult",
    "ParsedItem",
    "PollResult",
    "SendResult",
    "TopicSpec",
    "Verdict",
]
