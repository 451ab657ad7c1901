"""Provider factory and registry for hot-swappable LLM backends."""

from __future__ import annotations

import logging

from ...config import AssessmentConfig, LLMConfig, get_api_key
from .anthropic import AnthropicProvider
from .base import AssessmentProvider, HttpAssessmentProvider
from .gemini import GeminiProvider
from .ollama import OllamaProvider
from .openai_compatible import LMStudioProvider, OpenAICompatibleProvider, ZAIProvider


ProviderBuilder = type[HttpAssessmentProvider]

_PROVIDER_REGISTRY: dict[str, ProviderBuilder] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAICompatibleProvider,
    "gemini": GeminiProvider,
    "ollama": OllamaProvider,
    "lmstudio": LMStudioProvider,
    "zai": ZAIProvider,
}


def available_providers() -> list[str]:
    """Return the set of registered provider names."""
    return sorted(_PROVIDER_REGISTRY.keys())


def create_provider(
    llm_cfg: LLMConfig,
    assessment_cfg: AssessmentConfig,
    llm_logger: logging.Logger | None = None,
) -> AssessmentProvider:
    """Build a provider instance from runtime config."""
    name = llm_cfg.provider.lower().strip()
    builder = _PROVIDER_REGISTRY.get(name)
    if builder is None:
        supported = ", ".join(available_providers())
        raise ValueError(f"Unsupported provider: {llm_cfg.provider}. Supported: {supported}")
    api_key = get_api_key(llm_cfg)
    return builder(llm_cfg, assessment_cfg, api_key, llm_logger)
