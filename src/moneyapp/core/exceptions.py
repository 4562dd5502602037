"""Custom exception classes.

Each exception carries an error_code that maps to the catalog in errors.py.
Services raise these; the route layer turns them into JSON responses.
"""

from typing import Any


class MoneyAppError(Exception):
    """Base exception for all application errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "BUDGET_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    http_status = 500

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
    ):
        self.error_code = error_code
        self.details = details or {}
        if http_status is not None:
            self.http_status = http_status
        super().__init__(error_code)


class ValidationError(MoneyAppError):
    """Raised when input fails a business rule (amounts, categories, patterns)."""

    http_status = 400


class NotFoundError(MoneyAppError):
    """Raised when a resource does not exist or belongs to another user."""

    http_status = 404


class ConflictError(MoneyAppError):
    """Raised on conflicting state: overlapping budgets, sync already running."""

    http_status = 409


class NotConnectedError(MoneyAppError):
    """Raised when the user has no provider connection."""

    http_status = 404


class ProviderError(MoneyAppError):
    """Raised when the account-data provider call fails.

    Transient by default (network, rate limit, provider outage): eligible
    for retry on the next scheduled cycle.
    """

    http_status = 502

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int | None = None,
        provider_code: str | None = None,
    ):
        self.provider_code = provider_code
        super().__init__(error_code, details, http_status)


class ProviderAuthError(ProviderError):
    """Raised when the provider access credential is invalid or expired.

    Requires the user to re-link; never retried automatically.
    """

    http_status = 401
