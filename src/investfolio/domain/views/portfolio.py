"""View models for quotes and performance outputs."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from investfolio.domain.models import Investment, Purchase


@dataclass
class Quote:
    """Price observation for an asset from the price service."""

    coin_id: str
    price_usd: Decimal
    change_24h: Optional[Decimal] = None
    as_of: Optional[datetime] = None
    requested_date: Optional[date] = None  # set for historical quotes

    @property
    def is_historical(self) -> bool:
        return self.requested_date is not None


@dataclass
class CoinSearchResult:
    """Single asset match from a symbol/name search."""

    coin_id: str
    name: str
    symbol: str
    thumb: Optional[str] = None
    market_cap_rank: Optional[int] = None


@dataclass
class PricePoint:
    """One sample of a price time series."""

    timestamp: datetime
    price: Decimal


@dataclass
class PriceHistory:
    """Price time series for an asset over a day range."""

    coin_id: str
    currency: str
    days: int
    prices: list[PricePoint] = field(default_factory=list)
    as_of: Optional[datetime] = None


@dataclass
class PurchasePerformance:
    """Valuation of a single purchase at a given price."""

    current_value: Decimal
    unrealized_gain: Decimal
    unrealized_gain_percentage: Decimal
    original_purchase_price: Decimal
    price_change: Decimal
    price_change_percentage: Decimal


@dataclass
class PurchaseBreakdown:
    """A purchase together with its valuation."""

    purchase: Purchase
    performance: PurchasePerformance


@dataclass
class InvestmentPerformance:
    """Aggregated valuation across all purchases of one holding."""

    total_invested: Decimal = field(default_factory=lambda: Decimal("0"))
    total_tokens: Decimal = field(default_factory=lambda: Decimal("0"))
    current_market_value: Decimal = field(default_factory=lambda: Decimal("0"))
    unrealized_gains: Decimal = field(default_factory=lambda: Decimal("0"))
    unrealized_gain_percentage: Decimal = field(default_factory=lambda: Decimal("0"))
    average_purchase_price: Decimal = field(default_factory=lambda: Decimal("0"))
    purchase_performances: list[PurchaseBreakdown] = field(default_factory=list)


@dataclass
class PortfolioPerformance:
    """Portfolio-wide rollup across investments."""

    total_invested: Decimal = field(default_factory=lambda: Decimal("0"))
    total_current_value: Decimal = field(default_factory=lambda: Decimal("0"))
    total_unrealized_gains: Decimal = field(default_factory=lambda: Decimal("0"))
    total_unrealized_gain_percentage: Decimal = field(default_factory=lambda: Decimal("0"))
    profitable_investments: int = 0
    unprofitable_investments: int = 0
    investment_count: int = 0


@dataclass
class InvestmentDetails:
    """Investment with per-purchase performance breakdown."""

    investment: Investment
    performance: InvestmentPerformance
