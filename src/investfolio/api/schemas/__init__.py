"""Pydantic schemas for API request/response."""

from investfolio.api.schemas.investment import (
    InvestmentCreateRequest,
    PurchaseCreateRequest,
    MetadataUpdateRequest,
    PurchaseResponse,
    InvestmentResponse,
    InvestmentMutationResponse,
    PurchasePerformanceResponse,
    InvestmentPerformanceResponse,
    InvestmentDetailsResponse,
    PortfolioStatisticsResponse,
    PriceUpdateResponse,
)
from investfolio.api.schemas.crypto import (
    CoinSearchResultResponse,
    PricePointResponse,
    PriceHistoryResponse,
)

__all__ = [
    "InvestmentCreateRequest",
    "PurchaseCreateRequest",
    "MetadataUpdateRequest",
    "PurchaseResponse",
    "InvestmentResponse",
    "InvestmentMutationResponse",
    "PurchasePerformanceResponse",
    "InvestmentPerformanceResponse",
    "InvestmentDetailsResponse",
    "PortfolioStatisticsResponse",
    "PriceUpdateResponse",
    "CoinSearchResultResponse",
    "PricePointResponse",
    "PriceHistoryResponse",
]
