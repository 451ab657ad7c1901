"""LLM relevance assessment: prompts, output parsing and providers."""

from .parsing import parse_verdict
from .prompts import build_assessment_prompt, truncate_article
from .providers import AssessmentProvider, available_providers, create_provider

__all__ = [
    "AssessmentProvider",
    "available_providers",
    "build_assessment_prompt",
    "create_provider",
    "parse_verdict",
    "truncate_article",
]
