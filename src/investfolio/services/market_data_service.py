"""Market data service for crypto quotes, search and price history."""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Optional

import httpx

from investfolio.config.settings import get_settings
from investfolio.core.decimal_math import ZERO, to_decimal
from investfolio.core.exceptions import QuoteUnavailableError, RateLimitedDeferral
from investfolio.core.timezone import UTC, now_utc, parse_datetime
from investfolio.domain.views import (
    CacheStats,
    CoinSearchResult,
    PriceHistory,
    PricePoint,
    Quote,
)
from investfolio.providers.coingecko_provider import format_history_date
from investfolio.providers.price_provider import PriceProvider
from investfolio.services.price_cache import PriceCache

logger = logging.getLogger(__name__)

# Endpoint names used for cache keys and rate-limit tracking
SEARCH = "search"
PRICE = "price"
HISTORICAL = "historical"
CHART = "chart"

MIN_SEARCH_LENGTH = 2
SHORT_CHART_DAYS = 7

# Failures from the provider that may be answered from stale cache
_FETCH_ERRORS = (httpx.HTTPError, ValueError, QuoteUnavailableError)


class MarketDataService:
    """
    Service for fetching market data (quotes, search, charts).

    Wraps a provider with caching, rate limiting and graceful degradation:
    cache first, then a rate-limit check, then the network. A failed or
    rate-limited fetch falls back to the last known cached payload. Raw
    HTTP errors never escape; callers see QuoteUnavailableError or
    RateLimitedDeferral.
    """

    def __init__(
        self,
        provider: PriceProvider,
        cache: PriceCache,
        currency: Optional[str] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = get_settings()
        self._provider = provider
        self._cache = cache
        self._currency = (currency or settings.quote_currency).lower()
        self._sleep = sleep
        self._current_ttl = settings.current_price_ttl_seconds
        self._historical_ttl = settings.historical_price_ttl_seconds
        self._search_ttl = settings.search_ttl_seconds
        self._batch_size = settings.price_batch_size
        self._batch_pause = settings.price_batch_pause_seconds

    @property
    def cache(self) -> PriceCache:
        return self._cache

    @property
    def currency(self) -> str:
        return self._currency

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def search_coins(self, query: str) -> list[CoinSearchResult]:
        """Search assets by name or symbol. Queries under 2 characters return []."""
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            return []

        async def fetch() -> list[dict[str, Any]]:
            return await self._provider.search(query)

        payload = await self._cached_fetch(
            SEARCH, {"query": query.lower()}, fetch, self._search_ttl, asset=query
        )
        return [_search_result(item) for item in payload]

    async def get_current_quote(self, coin_id: str) -> Quote:
        """
        Current price of coin_id.

        Raises:
            QuoteUnavailableError: no price and nothing cached.
            RateLimitedDeferral: rate limited and nothing cached.
        """

        async def fetch() -> dict[str, Any]:
            prices = await self._provider.simple_price([coin_id], self._currency)
            if not _positive(prices.get(coin_id, {}).get("price")):
                raise QuoteUnavailableError(coin_id, reason="no price data returned")
            return _price_payload(coin_id, prices[coin_id])

        payload = await self._cached_fetch(
            PRICE, {"coin_id": coin_id}, fetch, self._current_ttl, asset=coin_id
        )
        return _quote_from_payload(coin_id, payload)

    async def get_historical_quote(self, coin_id: str, on_date: date) -> Quote:
        """
        Price of coin_id on a calendar date.

        Raises:
            QuoteUnavailableError: the service has no price for that date.
            RateLimitedDeferral: rate limited and nothing cached.
        """

        async def fetch() -> dict[str, Any]:
            data = await self._provider.coin_history(coin_id, on_date, self._currency)
            if not _positive(data.get("price")):
                raise QuoteUnavailableError(
                    coin_id, requested_date=on_date, reason="no historical data for that date"
                )
            return {
                "coin_id": coin_id,
                "price": data["price"],
                "change_24h": data.get("change_24h"),
                "last_updated": data.get("last_updated") or now_utc().isoformat(),
            }

        payload = await self._cached_fetch(
            HISTORICAL,
            {"coin_id": coin_id, "date": format_history_date(on_date)},
            fetch,
            self._historical_ttl,
            asset=coin_id,
            requested_date=on_date,
        )
        return _quote_from_payload(coin_id, payload, requested_date=on_date)

    async def get_market_chart(
        self,
        coin_id: str,
        days: int = 30,
        currency: Optional[str] = None,
    ) -> PriceHistory:
        """Price series for the last `days` days. Short ranges use the short TTL."""
        currency = (currency or self._currency).lower()

        async def fetch() -> dict[str, Any]:
            data = await self._provider.market_chart(coin_id, days, currency)
            return {
                "coin_id": coin_id,
                "currency": currency,
                "days": days,
                "prices": data.get("prices", []),
                "last_updated": now_utc().isoformat(),
            }

        ttl = self._current_ttl if days <= SHORT_CHART_DAYS else self._historical_ttl
        payload = await self._cached_fetch(
            CHART, {"coin_id": coin_id, "days": days, "currency": currency}, fetch, ttl, asset=coin_id
        )
        return PriceHistory(
            coin_id=coin_id,
            currency=currency,
            days=days,
            prices=[
                PricePoint(
                    timestamp=datetime.fromtimestamp(int(stamp) / 1000, tz=UTC),
                    price=to_decimal(price),
                )
                for stamp, price in payload.get("prices", [])
            ],
            as_of=_optional_datetime(payload.get("last_updated")),
        )

    async def batch_current_quotes(self, coin_ids: list[str]) -> dict[str, Quote]:
        """
        Current quotes for many coins.

        Cached coins are served from cache; the rest are fetched in sequential
        batches with a pause between them. A failed batch is logged and skipped
        (its coins fall back to stale cache where available).
        """
        unique_ids = list(dict.fromkeys(c for c in coin_ids if c))
        if not unique_ids:
            return {}

        payloads: dict[str, dict[str, Any]] = {}
        uncached = []
        for coin_id in unique_ids:
            cached = self._cache.get(self._price_key(coin_id))
            if cached is not None:
                payloads[coin_id] = cached
            else:
                uncached.append(coin_id)

        batches = [
            uncached[i : i + self._batch_size] for i in range(0, len(uncached), self._batch_size)
        ]
        for index, batch in enumerate(batches):
            try:
                prices = await self._provider.simple_price(batch, self._currency)
            except (httpx.HTTPError, ValueError) as exc:
                logger.error(
                    "Batch price fetch failed",
                    extra={"batch_size": len(batch), "error": str(exc)},
                )
            else:
                for coin_id, values in prices.items():
                    if coin_id not in batch or not _positive(values.get("price")):
                        continue
                    payload = _price_payload(coin_id, values)
                    self._cache.set(self._price_key(coin_id), payload, self._current_ttl)
                    payloads[coin_id] = payload

            if index < len(batches) - 1:
                await self._sleep(self._batch_pause)

        for coin_id in uncached:
            if coin_id not in payloads:
                stale = self._cache.get_stale(self._price_key(coin_id))
                if stale is not None:
                    payloads[coin_id] = stale

        logger.info(
            "Batch price update complete",
            extra={
                "total_coins": len(unique_ids),
                "cached_coins": len(unique_ids) - len(uncached),
                "fetched_coins": len(uncached),
                "successful": len(payloads),
            },
        )
        return {coin_id: _quote_from_payload(coin_id, p) for coin_id, p in payloads.items()}

    async def force_refresh(self, coin_id: str) -> Quote:
        """Drop the cached current price for coin_id and fetch it again."""
        self._cache.invalidate(self._price_key(coin_id))
        return await self.get_current_quote(coin_id)

    def clear_cache(self) -> int:
        return self._cache.clear()

    def cache_stats(self) -> CacheStats:
        return self._cache.stats()

    async def aclose(self) -> None:
        await self._provider.aclose()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _price_key(self, coin_id: str) -> str:
        return PriceCache.generate_key(PRICE, {"coin_id": coin_id})

    async def _cached_fetch(
        self,
        endpoint: str,
        params: dict[str, Any],
        fetch: Callable[[], Awaitable[Any]],
        ttl: float,
        asset: str,
        requested_date: Optional[date] = None,
    ) -> Any:
        key = PriceCache.generate_key(endpoint, params)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if not self._cache.check_rate_limit(endpoint):
            stale = self._cache.get_stale(key)
            logger.info(
                "Rate limited",
                extra={"endpoint": endpoint, "asset": asset, "served_stale": stale is not None},
            )
            if stale is not None:
                return stale
            raise RateLimitedDeferral(endpoint, asset, requested_date=requested_date)

        try:
            payload = await fetch()
        except _FETCH_ERRORS as exc:
            stale = self._cache.get_stale(key)
            if stale is not None:
                logger.warning(
                    "Fetch failed; serving stale data",
                    extra={"endpoint": endpoint, "asset": asset, "error": str(exc)},
                )
                return stale
            logger.error(
                "Fetch failed",
                extra={"endpoint": endpoint, "asset": asset, "error": str(exc)},
            )
            if isinstance(exc, QuoteUnavailableError):
                raise
            raise QuoteUnavailableError(asset, requested_date=requested_date, reason=str(exc)) from exc

        self._cache.set(key, payload, ttl)
        return payload


def _positive(value: Any) -> bool:
    try:
        return value is not None and to_decimal(value) > ZERO
    except ValueError:
        return False


def _price_payload(coin_id: str, values: dict[str, Any]) -> dict[str, Any]:
    return {
        "coin_id": coin_id,
        "price": values.get("price"),
        "change_24h": values.get("change_24h"),
        "last_updated": now_utc().isoformat(),
    }


def _quote_from_payload(
    coin_id: str,
    payload: dict[str, Any],
    requested_date: Optional[date] = None,
) -> Quote:
    if not _positive(payload.get("price")):
        raise QuoteUnavailableError(coin_id, requested_date=requested_date, reason="price missing")
    change = payload.get("change_24h")
    return Quote(
        coin_id=coin_id,
        price_usd=to_decimal(payload["price"]),
        change_24h=to_decimal(change) if change is not None else None,
        as_of=_optional_datetime(payload.get("last_updated")),
        requested_date=requested_date,
    )


def _search_result(item: dict[str, Any]) -> CoinSearchResult:
    return CoinSearchResult(
        coin_id=item["id"],
        name=item.get("name") or item["id"],
        symbol=(item.get("symbol") or "").upper(),
        thumb=item.get("thumb"),
        market_cap_rank=item.get("market_cap_rank"),
    )


def _optional_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parse_datetime(value)
    except (ValueError, OverflowError):
        return None
