"""Google Gemini assessment provider."""

from __future__ import annotations

from typing import Any

from .base import HttpAssessmentProvider


_VERDICT_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "relevant": {"type": "BOOLEAN"},
        "summary": {"type": "STRING"},
        "tags": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["relevant", "summary", "tags"],
}


class GeminiProvider(HttpAssessmentProvider):
    default_base_url = "https://generativelanguage.googleapis.com"

    def __init__(self, cfg, assessment_cfg, api_key, llm_logger=None, transport=None):  # noqa: ANN001
        if not api_key:
            raise ValueError("Missing Google API key")
        super().__init__(cfg, assessment_cfg, api_key, llm_logger, transport)

    def _complete(self, system: str, prompt: str) -> str:
        payload = {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.0,
                "maxOutputTokens": 1024,
                "responseMimeType": "application/json",
                "responseSchema": _VERDICT_RESPONSE_SCHEMA,
            },
        }
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        data = self._post(url, payload, params={"key": self.api_key})
        return _extract_text(data)


def _extract_text(data: dict[str, Any]) -> str:
    """Join the text parts of the first candidate, preferring non-thought parts."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    answer = [part.get("text", "") for part in parts if not part.get("thought")]
    if any(answer):
        return "".join(answer)
    return "".join(part.get("text", "") for part in parts)
