"""Mapping of application error codes to HTTP responses."""

from fastapi import HTTPException

from investfolio.domain.views import ServiceResult

STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "QUOTE_UNAVAILABLE": 502,
    "RATE_LIMITED": 503,
    "PERSISTENCE_ERROR": 503,
    "MIGRATION_FAILED": 500,
}


def status_for(code: str) -> int:
    return STATUS_BY_CODE.get(code, 400)


def unwrap(result: ServiceResult):
    """Return result.data, or raise the HTTPException matching the failure."""
    if not result.success:
        raise HTTPException(status_code=status_for(result.error_code), detail=result.message)
    return result.data
