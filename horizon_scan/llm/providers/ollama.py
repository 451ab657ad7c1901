"""Ollama chat API provider for local models."""

from __future__ import annotations

import os

from .base import HttpAssessmentProvider


class OllamaProvider(HttpAssessmentProvider):
    """HTTP client for Ollama's /api/chat endpoint.

    Environment:
      - OLLAMA_BASE_URL (default: http://localhost:11434)
    """

    @property
    def default_base_url(self) -> str:  # type: ignore[override]
        return os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    def _complete(self, system: str, prompt: str) -> str:
        payload = {
            "model": self.model,
            "stream": False,
            "format": "json",
            "options": {"temperature": 0},
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        }
        data = self._post(f"{self.base_url}/api/chat", payload)
        return (data.get("message") or {}).get("content", "")
