"""OpenAI-compatible chat completions provider (OpenAI, LM Studio, Z.AI)."""

from __future__ import annotations

import os
from typing import Any

from .base import HttpAssessmentProvider


class OpenAICompatibleProvider(HttpAssessmentProvider):
    default_base_url = "https://api.openai.com/v1"
    requires_api_key = True

    def __init__(self, cfg, assessment_cfg, api_key, llm_logger=None, transport=None):  # noqa: ANN001
        if self.requires_api_key and not api_key:
            raise ValueError(f"Missing API key for provider '{cfg.provider}'")
        super().__init__(cfg, assessment_cfg, api_key, llm_logger, transport)

    def _complete(self, system: str, prompt: str) -> str:
        payload = {
            "model": self.model,
            "temperature": 0,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        data = self._post(f"{self.base_url}/chat/completions", payload, headers=headers)
        return _extract_text(data)


class LMStudioProvider(OpenAICompatibleProvider):
    requires_api_key = False

    @property
    def default_base_url(self) -> str:  # type: ignore[override]
        return os.getenv("LMSTUDIO_BASE_URL", "http://localhost:1234/v1")


class ZAIProvider(OpenAICompatibleProvider):
    default_base_url = "https://api.z.ai/api/paas/v4"


def _extract_text(data: dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content or ""
