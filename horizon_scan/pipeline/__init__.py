"""Article-processing pipeline stages and the ingestion cycle."""

from .assessor import AssessmentStats, assess_pending_articles
from .coordinator import CycleReport, PollCycle, run_poll_cycle
from .dedup import deduplicate_and_store
from .extract_articles import extract_pending_articles
from .extractor import extract_content
from .fetcher import FetchResult, FetchStats, HostThrottle, fetch_article, fetch_pending_articles
from .poller import FeedParser, poll_feed

__all__ = [
    "AssessmentStats",
    "CycleReport",
    "FeedParser",
    "FetchResult",
    "FetchStats",
    "HostThrottle",
    "PollCycle",
    "assess_pending_articles",
    "deduplicate_and_store",
    "extract_content",
    "extract_pending_articles",
    "fetch_article",
    "fetch_pending_articles",
    "poll_feed",
    "run_poll_cycle",
]
