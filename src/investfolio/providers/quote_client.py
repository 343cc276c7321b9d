"""Retrying HTTP client for the external price service."""

import asyncio
import logging
import time
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from investfolio.config.settings import get_settings

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class QuoteClient:
    """
    Makes one GET call reliably: bounded attempts with exponential backoff.

    Has no cache awareness; callers decide whether a call is needed at all.
    Every non-success status, network failure or unreadable body counts as a
    retryable failure. The last failure propagates to the caller.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_attempts: Optional[int] = None,
        backoff_base: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
        headers: Optional[dict[str, str]] = None,
    ):
        settings = get_settings()
        self._client = client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self._max_attempts = max_attempts or settings.max_fetch_attempts
        self._backoff_base = backoff_base if backoff_base is not None else settings.retry_backoff_base
        self._sleep = sleep
        self._headers = {"Accept": "application/json", **(headers or {})}

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after a failed attempt (1-based)."""
        return self._backoff_base ** attempt

    async def fetch_with_retry(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
        max_attempts: Optional[int] = None,
    ) -> Any:
        """
        GET url and return the decoded JSON body.

        JSON floats are decoded as Decimal so prices keep their published digits.

        Raises:
            httpx.HTTPError or ValueError from the final attempt.
        """
        attempts = max_attempts or self._max_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        started = time.perf_counter()

        def log_failure(retry_state: RetryCallState) -> None:
            logger.warning(
                "Price API request failed",
                extra={
                    "url": url,
                    "attempt": retry_state.attempt_number,
                    "max_attempts": attempts,
                    "error": str(retry_state.outcome.exception()),
                    "will_retry": retry_state.attempt_number < attempts,
                    "latency_ms": _elapsed_ms(started),
                },
            )

        # base * base ** (n - 1) waits base ** n seconds after attempt n
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self._backoff_base, exp_base=self._backoff_base),
            retry=retry_if_exception_type((httpx.HTTPError, ValueError)),
            after=log_failure,
            reraise=True,
        )
        data = await retrying(self._get_json, url, params)

        logger.info(
            "Price API request succeeded",
            extra={
                "url": url,
                "attempt": retrying.statistics.get("attempt_number"),
                "latency_ms": _elapsed_ms(started),
            },
        )
        return data

    async def _get_json(self, url: str, params: Optional[dict[str, Any]]) -> Any:
        logger.debug("Price API request attempt", extra={"url": url})
        response = await self._client.get(url, params=params, headers=self._headers)
        response.raise_for_status()
        return response.json(parse_float=Decimal)

    async def aclose(self) -> None:
        await self._client.aclose()


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)
