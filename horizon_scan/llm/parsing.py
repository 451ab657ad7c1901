"""Tolerant parsing of LLM JSON output into a Verdict."""

from __future__ import annotations

import json
from typing import Any

from ..core.types import Verdict
from ..errors import AssessmentError


def parse_verdict(content: str) -> Verdict:
    """Parse a model response into a Verdict.

    Accepts bare JSON, fenced ```json blocks, or a JSON object embedded in
    prose. A missing summary defaults to "" and missing tags to [].

    Raises:
        AssessmentError: With status "parse_error" when no valid verdict is found
    """
    try:
        payload = parse_json_response(content)
    except json.JSONDecodeError as exc:
        raise AssessmentError(f"malformed model output: {exc.msg}", status="parse_error") from exc
    return verdict_from_payload(payload)


def verdict_from_payload(payload: Any) -> Verdict:
    if not isinstance(payload, dict):
        raise AssessmentError("model output is not a JSON object", status="parse_error")
    relevant = payload.get("relevant")
    if not isinstance(relevant, bool):
        raise AssessmentError("model output has no boolean 'relevant' field", status="parse_error")

    summary = payload.get("summary")
    if summary is None:
        summary = ""
    elif not isinstance(summary, str):
        raise AssessmentError("model output 'summary' is not a string", status="parse_error")

    tags = payload.get("tags")
    if tags is None:
        tags = []
    elif not isinstance(tags, list):
        raise AssessmentError("model output 'tags' is not a list", status="parse_error")
    tags = [str(tag).strip() for tag in tags if str(tag).strip()]

    return Verdict(relevant=relevant, summary=summary.strip(), tags=tags)


def parse_json_response(content: str) -> Any:
    if not content or not content.strip():
        raise json.JSONDecodeError("Empty content", content or "", 0)
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        extracted = _extract_json_snippet(content)
        return json.loads(extracted)


def _extract_json_snippet(content: str) -> str:
    fence = _extract_fenced_json(content)
    if fence:
        return fence
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise json.JSONDecodeError("No JSON object found", content, 0)
    return content[start : end + 1]


def _extract_fenced_json(content: str) -> str | None:
    lines = content.splitlines()
    start_idx = None
    for idx, line in enumerate(lines):
        if line.strip().startswith("```"):
            start_idx = idx + 1
            break
    if start_idx is None:
        return None
    for idx in range(start_idx, len(lines)):
        if lines[idx].strip().startswith("```"):
            snippet = "\n".join(lines[start_idx:idx]).strip()
            return snippet or None
    return None
