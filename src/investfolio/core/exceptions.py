"""Application-level exceptions."""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class FieldError:
    """A single violated input field."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """
    Raised when input validation fails.

    Carries every violated field so callers can report them all at once.
    """

    def __init__(self, message: str, errors: Optional[list[FieldError]] = None):
        self.errors = list(errors or [])
        super().__init__(message, code="VALIDATION_ERROR")

    @classmethod
    def from_errors(cls, errors: list[FieldError], subject: str = "input") -> "ValidationError":
        """Build a ValidationError whose message lists every violation."""
        details = "; ".join(str(e) for e in errors)
        return cls(f"Invalid {subject}: {details}", errors=errors)

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class QuoteUnavailableError(AppError):
    """Raised when the price service cannot supply a needed quote."""

    def __init__(
        self,
        asset: str,
        requested_date: Optional[date] = None,
        reason: Optional[str] = None,
        code: str = "QUOTE_UNAVAILABLE",
    ):
        self.asset = asset
        self.requested_date = requested_date
        self.reason = reason
        when = requested_date.isoformat() if requested_date else "today"
        message = f"Could not fetch price for {asset} ({when})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, code=code)


class RateLimitedDeferral(QuoteUnavailableError):
    """
    Raised when an endpoint is rate limited and nothing is cached for the request.

    A rate-limited lookup with cached data never raises; it serves the cached value.
    """

    def __init__(self, endpoint: str, asset: str, requested_date: Optional[date] = None):
        self.endpoint = endpoint
        super().__init__(
            asset,
            requested_date=requested_date,
            reason=f"endpoint '{endpoint}' is rate limited and no cached data exists",
            code="RATE_LIMITED",
        )


class MigrationValidationError(AppError):
    """Raised when migrated records fail validation; the migrated set is not committed."""

    def __init__(self, errors: list[dict], backup_key: Optional[str] = None):
        self.errors = errors
        self.backup_key = backup_key
        super().__init__(
            f"Data migration failed validation ({len(errors)} invalid records). "
            "Original data preserved.",
            code="MIGRATION_FAILED",
        )


class PersistenceError(AppError):
    """Raised when the durable store rejects a write."""

    def __init__(self, key: str, reason: str = "write rejected"):
        self.key = key
        super().__init__(f"Failed to persist '{key}': {reason}", code="PERSISTENCE_ERROR")
