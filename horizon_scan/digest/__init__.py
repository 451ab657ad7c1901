"""Digest building, rendering, delivery and the digest cycle."""

from .builder import build_digest, last_successful_digest_at
from .orchestrator import run_digest_cycle
from .renderer import digest_subject, render_digest_html
from .sender import MailgunSender

__all__ = [
    "MailgunSender",
    "build_digest",
    "digest_subject",
    "last_successful_digest_at",
    "render_digest_html",
    "run_digest_cycle",
]
