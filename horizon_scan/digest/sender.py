"""Digest delivery through the Mailgun messages API."""

from __future__ import annotations

import logging

import httpx

from ..config import MailgunConfig
from ..core.types import SendResult
from ..logging_utils import get_logger, log_event

logger = get_logger("mailgun")


class MailgunSender:
    """Callable ``(recipient, subject, html) -> SendResult`` backed by Mailgun.

    Never raises: transport errors and non-2xx responses come back as a
    failed SendResult.
    """

    def __init__(
        self,
        api_key: str,
        domain: str,
        cfg: MailgunConfig | None = None,
        transport: httpx.BaseTransport | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.cfg = cfg or MailgunConfig()
        self.api_key = api_key
        self.domain = domain
        self.endpoint = f"{self.cfg.base_url.rstrip('/')}/v3/{domain}/messages"
        self.sender = f"{self.cfg.from_name} <noreply@{domain}>"
        self._transport = transport
        self.log = log or logger

    def __call__(self, recipient: str, subject: str, html: str) -> SendResult:
        return self.send(recipient, subject, html)

    def send(self, recipient: str, subject: str, html: str) -> SendResult:
        data = {"from": self.sender, "to": recipient, "subject": subject, "html": html}
        try:
            with httpx.Client(timeout=self.cfg.timeout_seconds, transport=self._transport) as client:
                resp = client.post(self.endpoint, data=data, auth=("api", self.api_key))
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            error = _describe_error(exc)
            log_event(
                self.log,
                "Digest email send failed",
                level=logging.ERROR,
                event="digest_send_failed",
                recipient=recipient,
                error=error,
            )
            return SendResult.failed(error)

        message_id = payload.get("id") if isinstance(payload, dict) else None
        message_id = message_id or "unknown"
        log_event(self.log, "Digest email sent", event="digest_sent", recipient=recipient, message_id=message_id)
        return SendResult.ok(message_id)


def _describe_error(exc: Exception) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        body = exc.response.text[:200]
        return f"HTTP {exc.response.status_code}: {body}"
    return f"{type(exc).__name__}: {exc}"
