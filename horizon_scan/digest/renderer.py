"""
Digest email rendering.

Produces a self-contained HTML email with inline styles only (mail clients
drop <style> blocks) using a Jinja2 template with autoescaping.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.types import DigestData
from ..store.models import utc_now


_ENV = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def render_digest_html(data: DigestData, generated_at: datetime | None = None) -> str:
    """Render the digest to an HTML string."""
    generated_at = generated_at or utc_now()
    template = _ENV.get_template("digest.html")
    return template.render(
        title="Horizon Scan Digest",
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M UTC"),
        count_label=pluralize(data.total_article_count, "article"),
        groups=data.topic_groups,
    )


def digest_subject(data: DigestData, sent_at: datetime | None = None) -> str:
    sent_at = sent_at or utc_now()
    return f"Horizon Scan: {pluralize(data.total_article_count, 'article')} - {sent_at:%Y-%m-%d}"
