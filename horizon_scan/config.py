"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- LLMConfig: Assessment provider and model
- FeedConfig / ExtractorConfig: Seed feeds and per-feed selectors
- TopicConfig: Seed topics used as relevance criteria
- ScheduleConfig: Cron expressions for the poll and digest cycles
- DigestConfig: Digest recipient
- ExtractionConfig: Article fetch concurrency and per-host delay
- AssessmentConfig: Text truncation and LLM timeout
- PollerConfig: Feed request timeout and custom RSS item fields
- DatabaseConfig: SQLite database location
- MailgunConfig: Email delivery settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import os
from typing import Any

from croniter import croniter
import yaml

from .errors import ConfigError


SUPPORTED_PROVIDERS = ("anthropic", "openai", "gemini", "ollama", "lmstudio", "zai")


@dataclass
class LLMConfig:
    """Configuration for the assessment model.

    Attributes:
        provider: Provider name (one of SUPPORTED_PROVIDERS)
        model: Model identifier passed to the provider
        api_key: Optional inline API key (overrides the provider's env var)
        base_url: Optional base URL override for the provider API
    """

    provider: str = "anthropic"
    model: str = "claude-3-5-haiku-latest"
    api_key: str | None = None
    base_url: str | None = None


@dataclass
class ExtractorConfig:
    """Per-feed HTML extraction settings.

    Attributes:
        body_selector: CSS selector whose matches form the article body
        json_ld: Whether to parse embedded JSON-LD script blocks
        metadata_selectors: Optional mapping of metadata key to CSS selector
    """

    body_selector: str = "article"
    json_ld: bool = False
    metadata_selectors: dict[str, str] | None = None


@dataclass
class FeedConfig:
    name: str
    url: str
    extractor_config: ExtractorConfig = field(default_factory=ExtractorConfig)
    poll_interval_minutes: int = 15
    enabled: bool = True


@dataclass
class TopicConfig:
    name: str
    description: str
    enabled: bool = True


@dataclass
class ScheduleConfig:
    """Cron expressions (five fields) for the two recurring cycles.

    Expressions are evaluated in UTC, not the host's local time: "0 8 * * *"
    fires at 08:00 UTC.
    """

    poll: str = "*/15 * * * *"
    digest: str = "0 8 * * *"


@dataclass
class DigestConfig:
    recipient: str = ""


@dataclass
class ExtractionConfig:
    """Configuration for article HTML fetching.

    Attributes:
        max_concurrency: Number of articles fetched in parallel
        per_domain_delay_ms: Minimum delay between requests to the same host
    """

    max_concurrency: int = 2
    per_domain_delay_ms: int = 1000


@dataclass
class AssessmentConfig:
    """Configuration for LLM relevance assessment.

    Attributes:
        max_article_length: Maximum characters of article text sent to the LLM
        timeout_seconds: Timeout applied to each LLM request
    """

    max_article_length: int = 4000
    timeout_seconds: float = 60.0


@dataclass
class PollerConfig:
    """Configuration for RSS feed polling.

    Attributes:
        timeout_seconds: Feed request timeout
        custom_fields: Mapping of RSS item element name to metadata key
    """

    timeout_seconds: float = 30.0
    custom_fields: dict[str, str] = field(
        default_factory=lambda: {
            "prn:industry": "prnIndustry",
            "prn:subject": "prnSubject",
            "dc:contributor": "dcContributor",
        }
    )


@dataclass
class DatabaseConfig:
    path: str = "./data/horizon-scan.db"


@dataclass
class MailgunConfig:
    """Configuration for Mailgun digest delivery.

    Attributes:
        api_key_env: Environment variable holding the Mailgun API key
        domain_env: Environment variable holding the sending domain
        base_url: Mailgun API base URL (EU accounts use api.eu.mailgun.net)
        from_name: Display name used in the From header
        timeout_seconds: HTTP timeout for the send request
    """

    api_key_env: str = "MAILGUN_API_KEY"
    domain_env: str = "MAILGUN_DOMAIN"
    base_url: str = "https://api.mailgun.net"
    from_name: str = "Horizon Scan"
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Optional path of a log file
        format: Log file format ("jsonl" or "plain")
    """

    level: str = "INFO"
    console: bool = True
    file: str | None = None
    format: str = "jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    feeds: list[FeedConfig] = field(default_factory=list)
    topics: list[TopicConfig] = field(default_factory=list)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    digest: DigestConfig = field(default_factory=DigestConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    assessment: AssessmentConfig = field(default_factory=AssessmentConfig)
    poller: PollerConfig = field(default_factory=PollerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    mailgun: MailgunConfig = field(default_factory=MailgunConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_SECTIONS = {
    "llm": LLMConfig,
    "schedule": ScheduleConfig,
    "digest": DigestConfig,
    "extraction": ExtractionConfig,
    "assessment": AssessmentConfig,
    "poller": PollerConfig,
    "database": DatabaseConfig,
    "mailgun": MailgunConfig,
    "logging": LoggingConfig,
}


def load_config(path: str) -> AppConfig:
    """Load, merge and validate configuration from a YAML file.

    Raises:
        ConfigError: If the file cannot be read or parsed, or fails validation
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"failed to read config file at {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse YAML in {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"invalid configuration in {path}: top level must be a mapping")

    cfg = config_from_dict(raw)
    issues = validate_config(cfg)
    if issues:
        lines = "\n".join(f"  - {issue}" for issue in issues)
        raise ConfigError(f"invalid configuration in {path}:\n{lines}")
    return cfg


def config_from_dict(raw: dict[str, Any]) -> AppConfig:
    """Merge a raw mapping onto the default AppConfig."""
    data = asdict(AppConfig())
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    try:
        sections = {name: builder(**data[name]) for name, builder in _SECTIONS.items()}
        feeds = [_feed_fromdict(item) for item in data.get("feeds") or []]
        topics = [TopicConfig(**item) for item in data.get("topics") or []]
    except TypeError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
    return AppConfig(feeds=feeds, topics=topics, **sections)


def _feed_fromdict(item: dict[str, Any]) -> FeedConfig:
    values = dict(item)
    extractor = values.pop("extractor_config", None) or {}
    return FeedConfig(extractor_config=ExtractorConfig(**extractor), **values)


def validate_config(cfg: AppConfig) -> list[str]:
    """Return a list of human-readable validation issues (empty when valid)."""
    issues: list[str] = []
    if cfg.llm.provider not in SUPPORTED_PROVIDERS:
        supported = ", ".join(SUPPORTED_PROVIDERS)
        issues.append(f"llm.provider: unsupported '{cfg.llm.provider}' (expected one of {supported})")
    if not cfg.llm.model:
        issues.append("llm.model: must not be empty")
    if not cfg.feeds:
        issues.append("feeds: at least one feed is required")
    for idx, feed in enumerate(cfg.feeds):
        if not feed.name:
            issues.append(f"feeds.{idx}.name: must not be empty")
        if not feed.url.startswith(("http://", "https://")):
            issues.append(f"feeds.{idx}.url: must be an http(s) URL")
        if not feed.extractor_config.body_selector:
            issues.append(f"feeds.{idx}.extractor_config.body_selector: must not be empty")
        if feed.poll_interval_minutes <= 0:
            issues.append(f"feeds.{idx}.poll_interval_minutes: must be positive")
    if not cfg.topics:
        issues.append("topics: at least one topic is required")
    for idx, topic in enumerate(cfg.topics):
        if not topic.name:
            issues.append(f"topics.{idx}.name: must not be empty")
        if not topic.description:
            issues.append(f"topics.{idx}.description: must not be empty")
    for key in ("poll", "digest"):
        expression = getattr(cfg.schedule, key)
        if not expression.strip():
            issues.append(f"schedule.{key}: must not be empty")
        elif not croniter.is_valid(expression):
            issues.append(f"schedule.{key}: invalid cron expression '{expression}'")
    if "@" not in cfg.digest.recipient:
        issues.append("digest.recipient: must be an email address")
    if cfg.extraction.max_concurrency <= 0:
        issues.append("extraction.max_concurrency: must be positive")
    if cfg.extraction.per_domain_delay_ms < 0:
        issues.append("extraction.per_domain_delay_ms: must not be negative")
    if cfg.assessment.max_article_length <= 0:
        issues.append("assessment.max_article_length: must be positive")
    return issues


_API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GOOGLE_API_KEY",
    "zai": "ZAI_API_KEY",
}


def get_api_key(cfg: LLMConfig) -> str | None:
    """Get API key from inline config or the provider's environment variable."""
    if cfg.api_key:
        return cfg.api_key
    env_key = _API_KEY_ENV.get(cfg.provider)
    if env_key is None:
        return None
    return os.getenv(env_key)


def get_mailgun_credentials(cfg: MailgunConfig) -> tuple[str, str] | None:
    """Return (api_key, domain) from the environment, or None if either is unset."""
    api_key = os.getenv(cfg.api_key_env)
    domain = os.getenv(cfg.domain_env)
    if not api_key or not domain:
        return None
    return api_key, domain
