"""
Article lifecycle states and the transitions each pipeline stage may apply.

An article starts ``pending`` and ends either ``assessed`` or ``failed``.
Fetch and assessment failures each draw from their own retry budget; exhausting
either budget moves the article to ``failed``, which no stage selects again.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


MAX_FETCH_RETRIES = 3
MAX_ASSESSMENT_RETRIES = 3


class ArticleStatus(str, Enum):
    PENDING = "pending"
    ASSESSED = "assessed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ArticleStatus.PENDING


class CycleStage(str, Enum):
    POLLING = "polling"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    ASSESSING = "assessing"
    IDLE = "idle"


class InvalidTransition(ValueError):
    pass


@dataclass(frozen=True)
class Transition:
    """New values for an article's status and the retry counter a stage touched."""

    status: ArticleStatus
    retry_count: int


def after_fetch_success(status: ArticleStatus, retry_count: int) -> Transition:
    """Raw HTML stored; the article stays pending until it is assessed."""
    _require_pending(status, "fetch success")
    return Transition(ArticleStatus.PENDING, retry_count)


def after_fetch_failure(status: ArticleStatus, retry_count: int) -> Transition:
    _require_pending(status, "fetch failure")
    count = retry_count + 1
    if count >= MAX_FETCH_RETRIES:
        return Transition(ArticleStatus.FAILED, count)
    return Transition(ArticleStatus.PENDING, count)


def after_assessment(status: ArticleStatus, retry_count: int, failed: bool) -> Transition:
    """Transition applied once every topic has been attempted for an article."""
    _require_pending(status, "assessment")
    if not failed:
        return Transition(ArticleStatus.ASSESSED, retry_count)
    count = retry_count + 1
    if count >= MAX_ASSESSMENT_RETRIES:
        return Transition(ArticleStatus.FAILED, count)
    return Transition(ArticleStatus.PENDING, count)


def _require_pending(status: ArticleStatus, event: str) -> None:
    current = ArticleStatus(status)
    if current.is_terminal:
        raise InvalidTransition(f"cannot apply {event} to article in status '{current.value}'")
