"""Enumerations for domain models."""

from enum import Enum


class InvestmentCategory(str, Enum):
    """Asset classes an investment can belong to."""

    STOCKS = "Stocks"
    BONDS = "Bonds"
    REAL_ESTATE = "Real Estate"
    CRYPTOCURRENCY = "Cryptocurrency"
    ETF = "ETF"
    MUTUAL_FUNDS = "Mutual Funds"
    OTHER = "Other"

    @property
    def is_tokenized(self) -> bool:
        """Return True if purchases are priced per token by the quote service."""
        return self is InvestmentCategory.CRYPTOCURRENCY


class SchemaShape(str, Enum):
    """Persisted investment record layouts."""

    LEGACY = "LEGACY"  # flat record: single amount, single current value
    LEDGER = "LEDGER"  # purchase list with derived totals
