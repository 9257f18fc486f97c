"""
Custom exceptions for resumable polling.

Exhaustion and expiry are reported as poll outcomes, not exceptions. The
classes here cover misconfiguration and infrastructure failures, which are
always propagated to the execution container.
"""

from typing import Any


class PollingError(Exception):
    """Base exception for resumable polling errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code or "POLLING_ERROR"
        self.context = context or {}


class ConfigurationError(PollingError):
    """Exception for configuration related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", context)


class StateStoreError(PollingError):
    """Exception for durable state backend failures."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "STATE_STORE_ERROR", context)
        self.key = key
