"""Core utilities and shared functionality."""

from investfolio.core.decimal_math import DecimalMath, to_decimal
from investfolio.core.exceptions import (
    AppError,
    FieldError,
    ValidationError,
    NotFoundError,
    QuoteUnavailableError,
    RateLimitedDeferral,
    MigrationValidationError,
    PersistenceError,
)
from investfolio.core.timezone import (
    now_utc,
    today_local,
    to_utc,
    parse_datetime,
    parse_value_date,
)

__all__ = [
    "DecimalMath",
    "to_decimal",
    "AppError",
    "FieldError",
    "ValidationError",
    "NotFoundError",
    "QuoteUnavailableError",
    "RateLimitedDeferral",
    "MigrationValidationError",
    "PersistenceError",
    "now_utc",
    "today_local",
    "to_utc",
    "parse_datetime",
    "parse_value_date",
]
