"""
Centralized error types for discovery and their HTTP mapping.
Exceptions live here so services raise one taxonomy and routes stay thin.
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Constants: status codes
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_INTERNAL_ERROR = 500
STATUS_BAD_GATEWAY = 502
STATUS_SERVICE_UNAVAILABLE = 503  # rate limit retries exhausted

MSG_CREDENTIALS_MISSING = "Zenoti API key not configured. Add ZENOTI_API_KEY to .env."
MSG_RATE_LIMIT_EXCEEDED = "Rate limit exceeded. Please try again later."


class DiscoveryError(Exception):
    """Base error for everything raised by the discovery services."""


class ConfigurationError(DiscoveryError):
    """Raised before any network call when upstream credentials are missing."""


class ValidationError(DiscoveryError):
    """Raised for bad caller input (empty centers/services, invalid weeks or date)."""


class UpstreamError(DiscoveryError):
    """Non-retryable failure talking to the booking system."""

    def __init__(self, message: str, *, status_code: int | None = None, detail: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ProbeError(UpstreamError):
    """Provisional booking could not be created for a (center, date, services) triple."""


class SlotFetchError(UpstreamError):
    """Slots could not be fetched for a booking."""


class RateLimitExceeded(DiscoveryError):
    """Raised after the retry schedule is exhausted on repeated 429 responses."""

    def __init__(self, message: str = MSG_RATE_LIMIT_EXCEEDED, *, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


# ---------------------------------------------------------------------------
# Error rules: (exception type, status_code). First match wins, so subclasses
# must come before their bases.
# ---------------------------------------------------------------------------

DISCOVERY_ERROR_RULES: list[tuple[type[DiscoveryError], int]] = [
    (ValidationError, STATUS_BAD_REQUEST),
    (ConfigurationError, STATUS_INTERNAL_ERROR),
    (RateLimitExceeded, STATUS_SERVICE_UNAVAILABLE),
    (UpstreamError, STATUS_BAD_GATEWAY),
]


def discovery_error_status(exc: Exception) -> int:
    """Map a discovery exception to an HTTP status using DISCOVERY_ERROR_RULES; 500 otherwise."""
    for exc_type, status_code in DISCOVERY_ERROR_RULES:
        if isinstance(exc, exc_type):
            return status_code
    return STATUS_INTERNAL_ERROR


def discovery_error_body(exc: Exception) -> dict[str, Any]:
    """JSON body for a failed request: {"success": false, "error": ..., "detail"?: ...}."""
    body: dict[str, Any] = {"success": False, "error": str(exc)}
    detail = getattr(exc, "detail", None)
    if detail is not None:
        body["detail"] = detail
    return body
