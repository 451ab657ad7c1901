"""
Service wiring and lifecycle for Horizon Scan.

Startup order:
1. Open the store, create the schema and seed feeds/topics
2. Build the LLM provider (a failure disables assessment, nothing else)
3. Start the poll scheduler
4. Start the digest scheduler when Mailgun credentials are present
5. Block until SIGINT/SIGTERM, then stop schedulers and close the store
"""

from __future__ import annotations

import logging
import signal
import threading
from typing import Callable, Sequence

from .config import AppConfig, get_mailgun_credentials
from .digest import MailgunSender, run_digest_cycle
from .digest.orchestrator import SendDigest
from .llm.providers import AssessmentProvider, create_provider
from .logging_utils import get_logger, log_event
from .pipeline.coordinator import PollCycle
from .scheduler import CronJob
from .store import Store, seed_database

logger = get_logger("runner")


def open_store(cfg: AppConfig, database: str | None = None, log: logging.Logger | None = None) -> Store:
    """Open the database, create the schema and seed it from config."""
    store = Store.from_path(database or cfg.database.path)
    store.create_schema()
    with store.session_scope() as session:
        seed_database(session, cfg, log)
    return store


def build_provider(cfg: AppConfig, log: logging.Logger | None = None) -> AssessmentProvider | None:
    """Create the configured provider, or None (with a warning) if that fails."""
    log = log or logger
    try:
        provider = create_provider(cfg.llm, cfg.assessment)
    except Exception as exc:  # noqa: BLE001
        log_event(
            log,
            "LLM client init failed, assessment disabled",
            level=logging.WARNING,
            event="llm_init_failed",
            error=f"{type(exc).__name__}: {exc}",
        )
        return None
    log_event(log, "LLM client initialised", event="llm_init", provider=provider.name, model=provider.model)
    return provider


def build_sender(cfg: AppConfig) -> MailgunSender | None:
    credentials = get_mailgun_credentials(cfg.mailgun)
    if credentials is None:
        return None
    api_key, domain = credentials
    return MailgunSender(api_key, domain, cfg.mailgun)


def create_poll_scheduler(store: Store, cfg: AppConfig, provider: AssessmentProvider | None) -> CronJob:
    cycle = PollCycle(store, cfg, provider)
    return CronJob("poll", cfg.schedule.poll, cycle.run)


def create_digest_scheduler(store: Store, cfg: AppConfig, send_digest: SendDigest) -> CronJob:
    def run() -> None:
        with store.session_scope() as session:
            run_digest_cycle(session, cfg.digest, send_digest)

    return CronJob("digest", cfg.schedule.digest, run)


class Service:
    """Both schedulers plus the store they share."""

    def __init__(self, store: Store, schedulers: Sequence[CronJob], log: logging.Logger | None = None) -> None:
        self.store = store
        self.schedulers = list(schedulers)
        self.log = log or logger
        self._stopped = threading.Event()
        self._shutdown_lock = threading.Lock()
        self._shut_down = False

    def start(self) -> None:
        for job in self.schedulers:
            job.start()

    def shutdown(self, reason: str = "shutdown") -> None:
        """Stop every scheduler, then close the store. Safe to call twice."""
        with self._shutdown_lock:
            if self._shut_down:
                return
            self._shut_down = True

        log_event(self.log, "Shutdown requested", event="shutdown_start", reason=reason)
        for job in self.schedulers:
            try:
                job.stop()
            except Exception:  # noqa: BLE001
                self.log.exception("Error stopping scheduler", extra={"event": "shutdown_error", "job": job.name})
        try:
            self.store.close()
            log_event(self.log, "Database connection closed", event="db_closed")
        except Exception:  # noqa: BLE001
            self.log.exception("Error closing database", extra={"event": "shutdown_error"})
        log_event(self.log, "Shutdown complete", event="shutdown_complete")
        self._stopped.set()

    def install_signal_handlers(self) -> None:
        def handler(signum: int, _frame) -> None:  # noqa: ANN001
            # stopping joins threads; hand that off so the handler returns at once
            name = signal.Signals(signum).name
            threading.Thread(target=self.shutdown, args=(name,), name="shutdown").start()

        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)

    def wait(self, timeout: float | None = None) -> bool:
        return self._stopped.wait(timeout)


def build_service(
    cfg: AppConfig,
    database: str | None = None,
    provider_factory: Callable[[AppConfig], AssessmentProvider | None] = build_provider,
    sender_factory: Callable[[AppConfig], SendDigest | None] = build_sender,
    log: logging.Logger | None = None,
) -> Service:
    log = log or logger
    log_event(log, "Horizon Scan starting", event="startup", provider=cfg.llm.provider, model=cfg.llm.model)
    store = open_store(cfg, database, log)
    provider = provider_factory(cfg)

    schedulers = [create_poll_scheduler(store, cfg, provider)]
    send_digest = sender_factory(cfg)
    if send_digest is None:
        log_event(
            log,
            "Mailgun credentials not set, digest scheduler disabled",
            level=logging.WARNING,
            event="digest_disabled",
            api_key_env=cfg.mailgun.api_key_env,
            domain_env=cfg.mailgun.domain_env,
        )
    else:
        schedulers.append(create_digest_scheduler(store, cfg, send_digest))
    return Service(store, schedulers, log)


def serve(cfg: AppConfig, database: str | None = None) -> None:
    """Run the schedulers until a shutdown signal arrives."""
    service = build_service(cfg, database)
    service.install_signal_handlers()
    service.start()
    service.wait()
