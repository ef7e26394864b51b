"""
Exception hierarchy for ShipmentRecon.

Only batch-level failures are raised. Per-identifier outcomes (network error,
general error, partial, not found) are carried as data on the result records.
"""

from typing import Optional


class ReconciliationError(Exception):
    """Base exception for reconciliation failures."""

    pass


class ConfigError(ReconciliationError):
    """Raised when a required credential or setting is missing."""

    pass


class AuthError(ReconciliationError):
    """Raised when a login yields no usable session credential."""

    pass


class UpstreamError(ReconciliationError):
    """Raised on non-2xx or unparsable responses from an upstream call."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamNetworkError(UpstreamError):
    """Raised on connectivity failures (DNS, refused connection, timeout)."""

    pass
