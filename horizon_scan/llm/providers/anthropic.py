"""Anthropic Messages API provider."""

from __future__ import annotations

from typing import Any

from .base import HttpAssessmentProvider


ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(HttpAssessmentProvider):
    default_base_url = "https://api.anthropic.com"

    def __init__(self, cfg, assessment_cfg, api_key, llm_logger=None, transport=None):  # noqa: ANN001
        if not api_key:
            raise ValueError("Missing Anthropic API key")
        super().__init__(cfg, assessment_cfg, api_key, llm_logger, transport)

    def _complete(self, system: str, prompt: str) -> str:
        payload = {
            "model": self.model,
            "max_tokens": 1024,
            "temperature": 0,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {"x-api-key": self.api_key, "anthropic-version": ANTHROPIC_VERSION}
        data = self._post(f"{self.base_url}/v1/messages", payload, headers=headers)
        return _extract_text(data)


def _extract_text(data: dict[str, Any]) -> str:
    blocks = data.get("content") or []
    return "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
