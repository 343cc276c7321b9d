"""Cryptocurrency lookup endpoints."""

from fastapi import APIRouter, Depends, Query

from investfolio.api.deps import get_investment_service
from investfolio.api.errors import unwrap
from investfolio.api.schemas import CoinSearchResultResponse, PriceHistoryResponse
from investfolio.services import InvestmentService

router = APIRouter(prefix="/crypto", tags=["crypto"])


@router.get("/search", response_model=list[CoinSearchResultResponse])
async def search(
    query: str = Query(..., description="Coin name or symbol (2+ characters)"),
    service: InvestmentService = Depends(get_investment_service),
) -> list[CoinSearchResultResponse]:
    """Search cryptocurrencies by name or symbol."""
    results = unwrap(await service.search_cryptocurrencies(query))
    return [CoinSearchResultResponse.model_validate(r) for r in results]


@router.get("/{coin_id}/history", response_model=PriceHistoryResponse)
async def price_history(
    coin_id: str,
    days: int = Query(30, ge=1, le=365, description="Days of history"),
    service: InvestmentService = Depends(get_investment_service),
) -> PriceHistoryResponse:
    """Price series for a coin over the last `days` days."""
    history = unwrap(await service.get_price_history(coin_id, days))
    return PriceHistoryResponse.model_validate(history)
