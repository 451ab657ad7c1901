"""
Horizon Scan - RSS horizon scanning with LLM relevance assessment.

Polls RSS feeds, stores new articles, fetches and extracts their content,
asks an LLM whether each article is relevant to each configured topic, and
emails a digest of relevant articles on a schedule.

Main entry point is the CLI via `horizon-scan serve`.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
