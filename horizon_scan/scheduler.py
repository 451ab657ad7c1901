"""
Cron-driven background jobs.

Each CronJob owns one thread that sleeps until the next cron tick and runs
its callable. Ticks that fall due while the job is still running are
skipped, not queued.
"""

from __future__ import annotations

from datetime import datetime
import logging
import threading
from typing import Callable

from croniter import croniter

from .errors import ConfigError
from .logging_utils import get_logger, log_event
from .store.models import utc_now

logger = get_logger("scheduler")


def validate_cron(expression: str) -> None:
    if not croniter.is_valid(expression):
        raise ConfigError(f"invalid cron expression: {expression!r}")


class CronJob:
    """Run ``fn`` on a cron schedule in a daemon thread until stopped."""

    def __init__(
        self,
        name: str,
        expression: str,
        fn: Callable[[], object],
        clock: Callable[[], datetime] = utc_now,
        log: logging.Logger | None = None,
    ) -> None:
        validate_cron(expression)
        self.name = name
        self.expression = expression
        self.fn = fn
        self.clock = clock
        self.log = log or logger
        self.runs = 0
        self.skipped = 0
        self._stop = threading.Event()
        self._running = threading.Lock()
        self._thread: threading.Thread | None = None

    def next_fire_time(self, after: datetime) -> datetime:
        return croniter(self.expression, after).get_next(datetime)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name=f"cron-{self.name}", daemon=True)
        self._thread.start()
        log_event(self.log, "Scheduler started", event="scheduler_start", job=self.name, cron=self.expression)

    def stop(self, timeout: float | None = None) -> None:
        """Stop scheduling and wait for an in-flight run to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        log_event(self.log, "Scheduler stopped", event="scheduler_stop", job=self.name)

    def tick(self) -> bool:
        """Run the job once unless a previous run is still active.

        Returns True when the job ran.
        """
        if not self._running.acquire(blocking=False):
            self.skipped += 1
            log_event(
                self.log,
                "Previous run still active, skipping tick",
                level=logging.WARNING,
                event="scheduler_tick_skipped",
                job=self.name,
            )
            return False
        try:
            self.fn()
            self.runs += 1
        except Exception:  # noqa: BLE001
            self.log.exception("Scheduled job failed", extra={"event": "scheduler_job_failed", "job": self.name})
        finally:
            self._running.release()
        return True

    def _loop(self) -> None:
        next_at = self.next_fire_time(self.clock())
        while not self._stop.is_set():
            wait = (next_at - self.clock()).total_seconds()
            if wait > 0:
                if self._stop.wait(wait):
                    break
                continue
            self.tick()
            # ticks that passed while the job ran are dropped
            next_at = self.next_fire_time(self.clock())
