"""CoinGecko v3 price provider."""

from datetime import date
from typing import Any, Optional

from investfolio.config.settings import get_settings
from investfolio.providers.quote_client import QuoteClient

DEMO_API_KEY_HEADER = "x-cg-demo-api-key"


def format_history_date(on_date: date) -> str:
    """CoinGecko's /history endpoint takes dd-mm-yyyy."""
    return on_date.strftime("%d-%m-%Y")


class CoinGeckoProvider:
    """
    Fetches quotes from the CoinGecko public API.

    All HTTP goes through QuoteClient; responses are normalized to the
    PriceProvider payload shapes.
    """

    def __init__(
        self,
        client: Optional[QuoteClient] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        settings = get_settings()
        api_key = api_key or settings.price_api_key
        headers = {DEMO_API_KEY_HEADER: api_key} if api_key else None
        self._client = client or QuoteClient(headers=headers)
        self._base_url = (base_url or settings.price_api_base_url).rstrip("/")

    async def search(self, query: str) -> list[dict[str, Any]]:
        data = await self._client.fetch_with_retry(
            f"{self._base_url}/search", params={"query": query}
        )
        return [
            {
                "id": coin.get("id"),
                "name": coin.get("name"),
                "symbol": coin.get("symbol"),
                "thumb": coin.get("thumb"),
                "market_cap_rank": coin.get("market_cap_rank"),
            }
            for coin in (data or {}).get("coins", [])
            if coin.get("id")
        ]

    async def simple_price(self, coin_ids: list[str], currency: str) -> dict[str, dict[str, Any]]:
        data = await self._client.fetch_with_retry(
            f"{self._base_url}/simple/price",
            params={
                "ids": ",".join(coin_ids),
                "vs_currencies": currency,
                "include_24hr_change": "true",
            },
        )
        result = {}
        for coin_id, values in (data or {}).items():
            if not isinstance(values, dict) or values.get(currency) is None:
                continue
            result[coin_id] = {
                "price": values.get(currency),
                "change_24h": values.get(f"{currency}_24h_change"),
            }
        return result

    async def coin_history(self, coin_id: str, on_date: date, currency: str) -> dict[str, Any]:
        data = await self._client.fetch_with_retry(
            f"{self._base_url}/coins/{coin_id}/history",
            params={"date": format_history_date(on_date), "localization": "false"},
        )
        market_data = (data or {}).get("market_data") or {}
        return {
            "price": (market_data.get("current_price") or {}).get(currency),
            "change_24h": market_data.get("price_change_percentage_24h"),
            "last_updated": (data or {}).get("last_updated"),
        }

    async def market_chart(self, coin_id: str, days: int, currency: str) -> dict[str, Any]:
        data = await self._client.fetch_with_retry(
            f"{self._base_url}/coins/{coin_id}/market_chart",
            params={"vs_currency": currency, "days": days},
        )
        return {"prices": (data or {}).get("prices", [])}

    async def aclose(self) -> None:
        await self._client.aclose()
