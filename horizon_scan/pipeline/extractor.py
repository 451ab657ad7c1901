"""
HTML content extraction driven by per-feed selector configuration.

extract_content is a pure function: it reads the raw HTML and the feed's
extractor config and returns the body text plus any structured data. Missing
selectors and malformed JSON-LD blocks mean "no data" and are skipped.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from bs4 import BeautifulSoup

from ..core.types import ExtractionResult
from ..logging_utils import get_logger

logger = get_logger("extractor")

METADATA_SELECTOR_SOURCE = "metadataSelector"


def extract_content(
    html: str,
    config: Mapping[str, Any],
    log: logging.Logger | None = None,
) -> ExtractionResult:
    """Extract body text and structured data from HTML.

    Args:
        html: Raw HTML of the article page
        config: Extractor config with ``body_selector``, ``json_ld`` and
            optional ``metadata_selectors``

    Returns:
        ExtractionResult with the joined body text and structured data list

    Examples:
        >>> extract_content("<article><p>Hi</p></article>", {"body_selector": "article"}).extracted_text
        'Hi'
    """
    log = log or logger
    soup = BeautifulSoup(html or "", "html.parser")

    body_selector = config.get("body_selector") or ""
    texts = [el.get_text().strip() for el in soup.select(body_selector)] if body_selector else []
    extracted_text = "\n\n".join(text for text in texts if text)

    structured: list[dict[str, Any]] = []
    if config.get("json_ld"):
        structured.extend(_parse_json_ld(soup, log))

    for key, selector in (config.get("metadata_selectors") or {}).items():
        value = "".join(el.get_text() for el in soup.select(selector)).strip()
        if value:
            structured.append({"_source": METADATA_SELECTOR_SOURCE, key: value})

    return ExtractionResult(extracted_text=extracted_text, structured_data=structured)


def _parse_json_ld(soup: BeautifulSoup, log: logging.Logger) -> list[dict[str, Any]]:
    blocks: list[dict[str, Any]] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            log.debug("Skipping malformed JSON-LD block: %s", exc)
            continue
        if isinstance(parsed, dict):
            blocks.append(parsed)
        elif isinstance(parsed, list):
            blocks.extend(item for item in parsed if isinstance(item, dict))
    return blocks
