"""Error types surfaced by the Semrush request pipeline."""

from __future__ import annotations

from typing import Any, Optional

# Status reported when no HTTP response was received (DNS, connect, timeout).
TRANSPORT_ERROR_STATUS = 500


class ConfigurationError(ValueError):
    """Raised at construction time when the client cannot be configured."""


class SemrushApiError(Exception):
    """A failed Semrush API call.

    Carries the human-readable message, the upstream HTTP status (or
    ``TRANSPORT_ERROR_STATUS`` when the request never got a response) and,
    when the upstream sent one, the raw error payload.
    """

    def __init__(self, message: str, status: int, response: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.response = response

    def __repr__(self) -> str:
        return f"SemrushApiError(message={self.message!r}, status={self.status})"
