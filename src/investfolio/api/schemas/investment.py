"""Pydantic schemas for investment endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from investfolio.domain.models.enums import InvestmentCategory


class InvestmentCreateRequest(BaseModel):
    """Request schema for adding an investment (or buying more of a held coin)."""

    name: str = Field(..., description="Display name")
    category: InvestmentCategory
    amount_invested: Decimal = Field(..., description="Amount spent in the quote currency")
    investment_date: Optional[date] = Field(None, description="Value date (defaults to today)")
    coin_id: Optional[str] = None
    coin_symbol: Optional[str] = None
    coin_thumb: Optional[str] = None


class PurchaseCreateRequest(BaseModel):
    """Request schema for adding a purchase to an investment."""

    amount_invested: Decimal
    investment_date: Optional[date] = None


class MetadataUpdateRequest(BaseModel):
    """Request schema for editing investment metadata (values are derived)."""

    name: str = Field(..., min_length=1, max_length=255)


class PurchaseResponse(BaseModel):
    """Response schema for a single purchase."""

    purchase_id: str
    investment_date: date
    created_at: datetime
    amount_invested: Decimal
    tokens_acquired: Decimal
    price_per_token_usd: Decimal


class InvestmentResponse(BaseModel):
    """Response schema for a single investment."""

    investment_id: str
    name: str
    category: InvestmentCategory
    created_at: datetime
    updated_at: Optional[datetime] = None
    total_invested: Decimal
    current_market_value: Decimal
    unrealized_gains: Decimal
    realized_gains: Decimal
    purchases: list[PurchaseResponse]
    coin_id: Optional[str] = None
    coin_symbol: Optional[str] = None
    coin_thumb: Optional[str] = None
    current_price_usd: Optional[Decimal] = None
    total_tokens: Optional[Decimal] = None
    last_price_update: Optional[datetime] = None


class InvestmentMutationResponse(BaseModel):
    """Response schema for add-investment / add-purchase."""

    investment: InvestmentResponse
    message: str
    is_existing_investment: bool = False


class PurchasePerformanceResponse(BaseModel):
    """Response schema for one purchase's valuation."""

    purchase: PurchaseResponse
    current_value: Decimal
    unrealized_gain: Decimal
    unrealized_gain_percentage: Decimal
    original_purchase_price: Decimal
    price_change: Decimal
    price_change_percentage: Decimal


class InvestmentPerformanceResponse(BaseModel):
    """Response schema for aggregated holding performance."""

    total_invested: Decimal
    total_tokens: Decimal
    current_market_value: Decimal
    unrealized_gains: Decimal
    unrealized_gain_percentage: Decimal
    average_purchase_price: Decimal
    purchase_performances: list[PurchasePerformanceResponse]


class InvestmentDetailsResponse(BaseModel):
    """Response schema for an investment with its performance breakdown."""

    investment: InvestmentResponse
    performance: InvestmentPerformanceResponse


class PortfolioStatisticsResponse(BaseModel):
    """Response schema for portfolio-wide statistics."""

    count: int
    total_invested: Decimal
    total_current_value: Decimal
    total_unrealized_gains: Decimal
    total_unrealized_gain_percentage: Decimal
    profitable: int
    unprofitable: int


class PriceUpdateResponse(BaseModel):
    """Response schema for a crypto price refresh."""

    updated: list[InvestmentResponse]
    message: str
