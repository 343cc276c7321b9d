"""Pydantic schemas for cryptocurrency lookup endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class CoinSearchResultResponse(BaseModel):
    """Response schema for one search match."""

    model_config = {"from_attributes": True}

    coin_id: str
    name: str
    symbol: str
    thumb: Optional[str] = None
    market_cap_rank: Optional[int] = None


class PricePointResponse(BaseModel):
    """Response schema for one sample of a price series."""

    model_config = {"from_attributes": True}

    timestamp: datetime
    price: Decimal


class PriceHistoryResponse(BaseModel):
    """Response schema for a price series."""

    model_config = {"from_attributes": True}

    coin_id: str
    currency: str
    days: int
    prices: list[PricePointResponse]
    as_of: Optional[datetime] = None
