"""Price provider protocol."""

from datetime import date
from typing import Any, Protocol


class PriceProvider(Protocol):
    """
    Protocol for cryptocurrency price sources.

    Payloads are JSON-compatible so they can be cached as-is. Prices are
    Decimal (or None when the source has no price).
    """

    async def search(self, query: str) -> list[dict[str, Any]]:
        """
        Search assets by symbol or name.

        Returns a list of {"id", "name", "symbol", "thumb", "market_cap_rank"}.
        """
        ...

    async def simple_price(self, coin_ids: list[str], currency: str) -> dict[str, dict[str, Any]]:
        """
        Current prices for coin_ids.

        Returns coin_id -> {"price", "change_24h"}; unknown ids are omitted.
        """
        ...

    async def coin_history(self, coin_id: str, on_date: date, currency: str) -> dict[str, Any]:
        """Price on a calendar date: {"price", "change_24h", "last_updated"}."""
        ...

    async def market_chart(self, coin_id: str, days: int, currency: str) -> dict[str, Any]:
        """Time series: {"prices": [[epoch_ms, price], ...]}."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
