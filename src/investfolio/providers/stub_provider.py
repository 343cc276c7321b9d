"""Stub price provider for offline/testing use."""

import hashlib
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

from investfolio.core.timezone import UTC, today_local

# Deterministic fake USD prices for common coins: (symbol, name, price, 24h change %)
_STUB_COINS: dict[str, tuple[str, str, Decimal, Decimal]] = {
    "bitcoin": ("BTC", "Bitcoin", Decimal("65000.00"), Decimal("1.25")),
    "ethereum": ("ETH", "Ethereum", Decimal("3500.00"), Decimal("-0.80")),
    "solana": ("SOL", "Solana", Decimal("150.00"), Decimal("2.10")),
    "cardano": ("ADA", "Cardano", Decimal("0.45"), Decimal("-1.05")),
    "dogecoin": ("DOGE", "Dogecoin", Decimal("0.12"), Decimal("0.35")),
    "ripple": ("XRP", "XRP", Decimal("0.52"), Decimal("0.00")),
}


def _seeded_fraction(*parts: str) -> Decimal:
    """Stable value in [0, 1) derived from parts (same input, same output)."""
    digest = hashlib.sha256("|".join(parts).encode()).hexdigest()
    return Decimal(int(digest[:8], 16)) / Decimal(0x100000000)


def stub_price(coin_id: str) -> Decimal:
    if coin_id in _STUB_COINS:
        return _STUB_COINS[coin_id][2]
    return (Decimal("1") + _seeded_fraction(coin_id) * Decimal("99")).quantize(Decimal("0.01"))


def stub_history_price(coin_id: str, on_date: date) -> Decimal:
    drift = (_seeded_fraction(coin_id, on_date.isoformat()) - Decimal("0.5")) / Decimal("5")
    return (stub_price(coin_id) * (Decimal("1") + drift)).quantize(Decimal("0.01"))


class StubPriceProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Known coins use fixed prices; unknown ids get a price derived from a hash of
    the id. Historical prices drift up to +/-10% by date, also deterministically.
    """

    async def search(self, query: str) -> list[dict[str, Any]]:
        needle = query.strip().lower()
        return [
            {
                "id": coin_id,
                "name": name,
                "symbol": symbol,
                "thumb": None,
                "market_cap_rank": rank,
            }
            for rank, (coin_id, (symbol, name, _, _)) in enumerate(_STUB_COINS.items(), start=1)
            if needle in coin_id or needle in name.lower() or needle == symbol.lower()
        ]

    async def simple_price(self, coin_ids: list[str], currency: str) -> dict[str, dict[str, Any]]:
        result = {}
        for coin_id in coin_ids:
            change = _STUB_COINS[coin_id][3] if coin_id in _STUB_COINS else Decimal("0")
            result[coin_id] = {"price": stub_price(coin_id), "change_24h": change}
        return result

    async def coin_history(self, coin_id: str, on_date: date, currency: str) -> dict[str, Any]:
        return {
            "price": stub_history_price(coin_id, on_date),
            "change_24h": Decimal("0"),
            "last_updated": datetime.combine(on_date, datetime.min.time(), tzinfo=UTC).isoformat(),
        }

    async def market_chart(self, coin_id: str, days: int, currency: str) -> dict[str, Any]:
        end = today_local()
        prices = []
        for offset in range(days, -1, -1):
            day = end - timedelta(days=offset)
            stamp = datetime.combine(day, datetime.min.time(), tzinfo=UTC)
            prices.append([int(stamp.timestamp() * 1000), stub_history_price(coin_id, day)])
        return {"prices": prices}

    async def aclose(self) -> None:
        return None
