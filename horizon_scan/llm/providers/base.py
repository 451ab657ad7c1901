"""Abstract interface for relevance assessment providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging

import httpx

from ...config import AssessmentConfig, LLMConfig
from ...core.types import TopicSpec, Verdict
from ...errors import AssessmentError
from ...logging_utils import get_logger, log_event, truncate_text
from ..parsing import parse_verdict
from ..prompts import SYSTEM_PROMPT, build_assessment_prompt


class AssessmentProvider(ABC):
    """Judges whether an article's text is relevant to a topic.

    Attributes:
        name: Provider identifier recorded on each Assessment
        model: Model identifier recorded on each Assessment
    """

    name: str = ""
    model: str = ""

    @abstractmethod
    def assess(self, topic: TopicSpec, text: str) -> Verdict:
        """Return the verdict for one (topic, text) pair.

        Raises:
            AssessmentError: On provider error, timeout, or malformed output
        """
        raise NotImplementedError


class HttpAssessmentProvider(AssessmentProvider):
    """Base for providers reached over an HTTP JSON API.

    Subclasses implement ``_complete`` to send the system and user prompts and
    return the model's raw text; prompt building, timeout handling and verdict
    parsing live here.
    """

    default_base_url: str = ""

    def __init__(
        self,
        cfg: LLMConfig,
        assessment_cfg: AssessmentConfig,
        api_key: str | None,
        llm_logger: logging.Logger | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.cfg = cfg
        self.name = cfg.provider
        self.model = cfg.model
        self.api_key = api_key
        self.base_url = (cfg.base_url or self.default_base_url).rstrip("/")
        self.timeout = assessment_cfg.timeout_seconds
        self.llm_logger = llm_logger or get_logger("llm")
        self._transport = transport

    def assess(self, topic: TopicSpec, text: str) -> Verdict:
        prompt = build_assessment_prompt(topic, text)
        try:
            content = self._complete(SYSTEM_PROMPT, prompt)
        except httpx.TimeoutException as exc:
            self._log_response(topic, "timeout", str(exc))
            raise AssessmentError(f"LLM request timed out: {exc}", status="timeout") from exc
        except httpx.HTTPError as exc:
            self._log_response(topic, "provider_error", str(exc))
            raise AssessmentError(f"LLM provider error: {type(exc).__name__}: {exc}") from exc

        try:
            verdict = parse_verdict(content)
        except AssessmentError as exc:
            self._log_response(topic, exc.status, content)
            raise
        self._log_response(topic, "ok", content)
        return verdict

    def _complete(self, system: str, prompt: str) -> str:
        raise NotImplementedError

    def _post(self, url: str, payload: dict, headers: dict | None = None, params: dict | None = None) -> dict:
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            resp = client.post(url, json=payload, headers=headers, params=params)
            resp.raise_for_status()
            return resp.json()

    def _log_response(self, topic: TopicSpec, status: str, content: str) -> None:
        log_event(
            self.llm_logger,
            "LLM response",
            level=logging.DEBUG,
            event="llm_assessment_response",
            status=status,
            provider=self.name,
            model=self.model,
            topic=topic.name,
            raw_response=truncate_text(content or ""),
        )
