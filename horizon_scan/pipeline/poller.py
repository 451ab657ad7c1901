"""
RSS/Atom feed polling.

The network request is done with ``httpx`` so timeouts and headers are
consistent with the article fetcher; the body is then parsed by
``feedparser``. Polling never raises: any failure is reported in the
returned PollResult so one broken feed cannot abort a cycle.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

import feedparser
import httpx

from ..core.types import ParsedItem, PollResult
from ..logging_utils import get_logger, log_event

logger = get_logger("poller")

FEED_HEADERS = {
    "User-Agent": "HorizonScan/1.0 (RSS feed poller)",
    "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
}

# feedparser folds some well-known elements into its own keys
_FEEDPARSER_KEYS = {
    "dc:contributor": "contributors",
    "dc:creator": "author",
    "dc:subject": "tags",
}


class FeedParser:
    """Parses feed documents and normalizes their items.

    Attributes:
        custom_fields: Mapping of RSS item element name (e.g. "prn:industry")
            to the metadata key it is stored under (e.g. "prnIndustry")
    """

    def __init__(self, custom_fields: Mapping[str, str] | None = None) -> None:
        self.custom_fields = dict(custom_fields or {})

    def parse(self, content: bytes | str) -> list[ParsedItem]:
        parsed = feedparser.parse(content)
        entries = getattr(parsed, "entries", None) or []
        if getattr(parsed, "bozo", False):
            exc = getattr(parsed, "bozo_exception", None)
            if not entries:
                raise ValueError(f"unparsable feed: {exc}")
            logger.debug("Feed flagged as malformed but yielded entries: %s", exc)
        return [self.normalize(entry) for entry in entries]

    def normalize(self, entry: Mapping[str, Any]) -> ParsedItem:
        link = entry.get("link") or ""
        guid = entry.get("id") or link or ""
        return ParsedItem(
            guid=guid,
            title=entry.get("title"),
            url=link,
            published_at=_parse_datetime(entry),
            metadata=self._custom_metadata(entry),
        )

    def _custom_metadata(self, entry: Mapping[str, Any]) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        for element, key in self.custom_fields.items():
            value = _flatten(entry.get(_entry_key(element)))
            if value:
                metadata[key] = value
        return metadata


def poll_feed(
    feed_name: str,
    feed_url: str,
    parser: FeedParser,
    client: httpx.Client | None = None,
    timeout: float = 30.0,
    log: logging.Logger | None = None,
) -> PollResult:
    """Fetch and parse one feed.

    Args:
        feed_name: Feed name used in logs and the result
        feed_url: URL of the RSS/Atom document
        parser: FeedParser used to normalize items
        client: Optional shared httpx client (a short-lived one is created otherwise)
        timeout: Request timeout in seconds when no client is given

    Returns:
        PollResult with items on success, or no items and an error message
    """
    log = log or logger
    try:
        content = _download(feed_url, client, timeout)
        items = parser.parse(content)
    except Exception as exc:  # noqa: BLE001
        message = f"{type(exc).__name__}: {exc}"
        log_event(
            log,
            "Feed poll failed",
            level=logging.ERROR,
            event="feed_poll_failed",
            feed_name=feed_name,
            feed_url=feed_url,
            error=message,
        )
        return PollResult(feed_name=feed_name, items=[], error=message)

    log_event(log, "Feed polled", event="feed_polled", feed_name=feed_name, item_count=len(items))
    return PollResult(feed_name=feed_name, items=items, error=None)


def _download(url: str, client: httpx.Client | None, timeout: float) -> bytes:
    if client is not None:
        resp = client.get(url, headers=FEED_HEADERS)
        resp.raise_for_status()
        return resp.content
    with httpx.Client(timeout=timeout, follow_redirects=True) as own_client:
        resp = own_client.get(url, headers=FEED_HEADERS)
        resp.raise_for_status()
        return resp.content


def _entry_key(element: str) -> str:
    if element in _FEEDPARSER_KEYS:
        return _FEEDPARSER_KEYS[element]
    return element.replace(":", "_")


def _flatten(value: Any) -> Any:
    if isinstance(value, list):
        names = [_flatten(item) for item in value]
        names = [name for name in names if name]
        return ", ".join(str(name) for name in names) if names else None
    if isinstance(value, Mapping):
        return value.get("name") or value.get("term") or value.get("value")
    if isinstance(value, str):
        return value.strip() or None
    return value


def _parse_datetime(entry: Mapping[str, Any]) -> datetime | None:
    # feedparser normalizes to UTC struct_time in *_parsed
    for key in ("published_parsed", "updated_parsed"):
        tm = entry.get(key)
        if tm:
            try:
                return datetime(*tm[:6])
            except (TypeError, ValueError):
                return None
    return None
