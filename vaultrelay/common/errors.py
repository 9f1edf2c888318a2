"""Relay error taxonomy.

Each error knows the HTTP status it maps to; the router renders all of them
as a `{error, details?}` JSON envelope.
"""

from typing import Any


class RelayError(Exception):
    """Base class for failures surfaced to the browser."""

    status_code = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(RelayError):
    """Required caller input is missing or empty."""

    status_code = 400


class ConfigError(RelayError):
    """PayPal credentials are not configured."""


class UpstreamError(RelayError):
    """PayPal answered non-2xx or the transport failed."""

    def __init__(self, message: str, details: Any = None, upstream_status: int | None = None) -> None:
        super().__init__(message, details)
        self.upstream_status = upstream_status


class AuthError(UpstreamError):
    """Access-token or identity-token exchange failed."""
