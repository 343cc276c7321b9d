"""Result and report models returned across service boundaries."""

from dataclasses import dataclass, field
from typing import Any, Optional

from investfolio.core.exceptions import AppError
from investfolio.domain.models import Investment


@dataclass
class ServiceResult:
    """
    Caller-facing outcome of an InvestmentService operation.

    Expected failures (validation, missing quotes, storage) are reported here
    instead of raised.
    """

    success: bool
    data: Any = None
    message: str = ""
    error_code: Optional[str] = None
    errors: list[str] = field(default_factory=list)
    is_existing_investment: bool = False

    @classmethod
    def ok(cls, data: Any = None, message: str = "", is_existing_investment: bool = False) -> "ServiceResult":
        return cls(
            success=True,
            data=data,
            message=message,
            is_existing_investment=is_existing_investment,
        )

    @classmethod
    def fail(cls, error: AppError) -> "ServiceResult":
        details = [str(e) for e in getattr(error, "errors", []) or []]
        return cls(success=False, message=error.message, error_code=error.code, errors=details)


@dataclass
class MigrationReport:
    """Output of migrating a batch of legacy records."""

    migrated: list[Investment] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


@dataclass
class MigrationValidation:
    """Result of re-validating migrated records."""

    is_valid: bool = True
    warnings: list[str] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


@dataclass
class MigrationOutcome:
    """Summary of a migration run."""

    migrated: bool = False
    original_count: int = 0
    migrated_count: int = 0
    backup_key: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


@dataclass
class CacheStats:
    """Sizes of the price cache tiers."""

    memory_entries: int = 0
    storage_entries: int = 0
    storage_size_bytes: int = 0
    rate_limit_trackers: int = 0
