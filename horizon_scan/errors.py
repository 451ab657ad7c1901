"""Exception hierarchy for Horizon Scan."""

from __future__ import annotations


class HorizonScanError(Exception):
    """Base class for all Horizon Scan errors."""


class ConfigError(HorizonScanError):
    """Configuration file is missing, unparsable, or invalid."""


class AssessmentError(HorizonScanError):
    """An LLM assessment call failed (provider error, timeout, or malformed output).

    Attributes:
        status: Short failure category ("provider_error", "timeout", "parse_error")
    """

    def __init__(self, message: str, status: str = "provider_error"):
        super().__init__(message)
        self.status = status
