"""Prompt builders for relevance assessment."""

from __future__ import annotations

from ..core.types import TopicSpec


SYSTEM_PROMPT = (
    "You are a relevance assessor. Evaluate whether the article is relevant to the given topic. "
    "Return strict JSON with keys: relevant (boolean), summary (string, 2-3 sentences on why the "
    "article matters for the topic, empty if not relevant), tags (array of strings naming the "
    "companies, technologies and people the article is about, empty if not relevant). "
    "Do not include markdown or any text outside the JSON object."
)


def truncate_article(text: str, max_chars: int) -> str:
    return text[:max_chars]


def build_assessment_prompt(topic: TopicSpec, text: str) -> str:
    return f"Topic: {topic.name}\nDescription: {topic.description}\n\nArticle:\n{text}"
