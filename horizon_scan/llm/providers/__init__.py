"""LLM provider implementations for relevance assessment."""

from .anthropic import AnthropicProvider
from .base import AssessmentProvider, HttpAssessmentProvider
from .factory import available_providers, create_provider
from .gemini import GeminiProvider
from .ollama import OllamaProvider
from .openai_compatible import LMStudioProvider, OpenAICompatibleProvider, ZAIProvider

__all__ = [
    "AssessmentProvider",
    "HttpAssessmentProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "OllamaProvider",
    "OpenAICompatibleProvider",
    "LMStudioProvider",
    "ZAIProvider",
    "create_provider",
    "available_providers",
]
