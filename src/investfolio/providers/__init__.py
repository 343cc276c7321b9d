"""Price providers module."""

from investfolio.providers.price_provider import PriceProvider
from investfolio.providers.quote_client import QuoteClient
from investfolio.providers.coingecko_provider import CoinGeckoProvider
from investfolio.providers.stub_provider import StubPriceProvider

__all__ = [
    "PriceProvider",
    "QuoteClient",
    "CoinGeckoProvider",
    "StubPriceProvider",
]
