"""Domain models package."""

from investfolio.domain.models.enums import InvestmentCategory, SchemaShape
from investfolio.domain.models.investment import Investment, Purchase, CryptoHolding
from investfolio.domain.models.cache import CacheEntry

__all__ = [
    "InvestmentCategory",
    "SchemaShape",
    "Investment",
    "Purchase",
    "CryptoHolding",
    "CacheEntry",
]
