"""Domain layer - pure business models with no external dependencies."""

from investfolio.domain.models import (
    InvestmentCategory,
    SchemaShape,
    Investment,
    Purchase,
    CryptoHolding,
    CacheEntry,
)

__all__ = [
    "InvestmentCategory",
    "SchemaShape",
    "Investment",
    "Purchase",
    "CryptoHolding",
    "CacheEntry",
]
