"""View models for service outputs."""

from investfolio.domain.views.portfolio import (
    Quote,
    CoinSearchResult,
    PricePoint,
    PriceHistory,
    PurchasePerformance,
    PurchaseBreakdown,
    InvestmentPerformance,
    PortfolioPerformance,
    InvestmentDetails,
)
from investfolio.domain.views.results import (
    ServiceResult,
    MigrationReport,
    MigrationValidation,
    MigrationOutcome,
    CacheStats,
)

__all__ = [
    "Quote",
    "CoinSearchResult",
    "PricePoint",
    "PriceHistory",
    "PurchasePerformance",
    "PurchaseBreakdown",
    "InvestmentPerformance",
    "PortfolioPerformance",
    "InvestmentDetails",
    "ServiceResult",
    "MigrationReport",
    "MigrationValidation",
    "MigrationOutcome",
    "CacheStats",
]
