"""Investment endpoints."""

from fastapi import APIRouter, Depends, Response

from investfolio.api.deps import get_investment_service
from investfolio.api.errors import unwrap
from investfolio.api.schemas import (
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
from investfolio.domain.models import Investment, Purchase
from investfolio.services import InvestmentCreate, InvestmentService, PurchaseCreate

router = APIRouter(prefix="/investments", tags=["investments"])


def _purchase_response(purchase: Purchase) -> PurchaseResponse:
    return PurchaseResponse(
        purchase_id=purchase.purchase_id,
        investment_date=purchase.investment_date,
        created_at=purchase.created_at,
        amount_invested=purchase.amount_invested,
        tokens_acquired=purchase.tokens_acquired,
        price_per_token_usd=purchase.price_per_token_usd,
    )


def _investment_response(investment: Investment) -> InvestmentResponse:
    crypto = investment.crypto
    return InvestmentResponse(
        investment_id=investment.investment_id,
        name=investment.name,
        category=investment.category,
        created_at=investment.created_at,
        updated_at=investment.updated_at,
        total_invested=investment.total_invested,
        current_market_value=investment.current_market_value,
        unrealized_gains=investment.unrealized_gains,
        realized_gains=investment.realized_gains,
        purchases=[_purchase_response(p) for p in investment.purchases],
        coin_id=crypto.coin_id if crypto else None,
        coin_symbol=crypto.coin_symbol if crypto else None,
        coin_thumb=crypto.coin_thumb if crypto else None,
        current_price_usd=crypto.current_price_usd if crypto else None,
        total_tokens=crypto.total_tokens if crypto else None,
        last_price_update=crypto.last_price_update if crypto else None,
    )


@router.get("", response_model=list[InvestmentResponse])
async def list_investments(
    service: InvestmentService = Depends(get_investment_service),
) -> list[InvestmentResponse]:
    """List all investments."""
    return [_investment_response(i) for i in service.list_investments()]


@router.post("", response_model=InvestmentMutationResponse, status_code=201)
async def add_investment(
    data: InvestmentCreateRequest,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentMutationResponse:
    """Add an investment; buying a coin already held adds a purchase to it."""
    result = await service.add_investment(
        InvestmentCreate(
            name=data.name,
            category=data.category,
            amount_invested=data.amount_invested,
            investment_date=data.investment_date,
            coin_id=data.coin_id,
            coin_symbol=data.coin_symbol,
            coin_thumb=data.coin_thumb,
        )
    )
    investment = unwrap(result)
    return InvestmentMutationResponse(
        investment=_investment_response(investment),
        message=result.message,
        is_existing_investment=result.is_existing_investment,
    )


@router.get("/statistics", response_model=PortfolioStatisticsResponse)
async def get_statistics(
    service: InvestmentService = Depends(get_investment_service),
) -> PortfolioStatisticsResponse:
    """Portfolio totals and profitable/unprofitable counts."""
    stats = unwrap(service.get_investment_statistics())
    return PortfolioStatisticsResponse(
        count=stats.investment_count,
        total_invested=stats.total_invested,
        total_current_value=stats.total_current_value,
        total_unrealized_gains=stats.total_unrealized_gains,
        total_unrealized_gain_percentage=stats.total_unrealized_gain_percentage,
        profitable=stats.profitable_investments,
        unprofitable=stats.unprofitable_investments,
    )


@router.post("/prices/refresh", response_model=PriceUpdateResponse)
async def refresh_prices(
    service: InvestmentService = Depends(get_investment_service),
) -> PriceUpdateResponse:
    """Refresh live prices of all crypto holdings."""
    result = await service.update_crypto_prices()
    updated = unwrap(result)
    return PriceUpdateResponse(
        updated=[_investment_response(i) for i in updated],
        message=result.message,
    )


@router.get("/{investment_id}", response_model=InvestmentDetailsResponse)
async def get_investment(
    investment_id: str,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentDetailsResponse:
    """Get an investment with its per-purchase performance."""
    details = unwrap(service.get_investment_details(investment_id))
    performance = details.performance
    return InvestmentDetailsResponse(
        investment=_investment_response(details.investment),
        performance=InvestmentPerformanceResponse(
            total_invested=performance.total_invested,
            total_tokens=performance.total_tokens,
            current_market_value=performance.current_market_value,
            unrealized_gains=performance.unrealized_gains,
            unrealized_gain_percentage=performance.unrealized_gain_percentage,
            average_purchase_price=performance.average_purchase_price,
            purchase_performances=[
                PurchasePerformanceResponse(
                    purchase=_purchase_response(b.purchase),
                    current_value=b.performance.current_value,
                    unrealized_gain=b.performance.unrealized_gain,
                    unrealized_gain_percentage=b.performance.unrealized_gain_percentage,
                    original_purchase_price=b.performance.original_purchase_price,
                    price_change=b.performance.price_change,
                    price_change_percentage=b.performance.price_change_percentage,
                )
                for b in performance.purchase_performances
            ],
        ),
    )


@router.patch("/{investment_id}", response_model=InvestmentResponse)
async def update_investment(
    investment_id: str,
    data: MetadataUpdateRequest,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentResponse:
    """Rename an investment."""
    investment = unwrap(service.update_investment_metadata(investment_id, {"name": data.name}))
    return _investment_response(investment)


@router.delete("/{investment_id}", status_code=204)
async def delete_investment(
    investment_id: str,
    service: InvestmentService = Depends(get_investment_service),
) -> Response:
    """Delete an investment and all of its purchases."""
    unwrap(service.delete_investment(investment_id))
    return Response(status_code=204)


@router.post(
    "/{investment_id}/purchases",
    response_model=InvestmentMutationResponse,
    status_code=201,
)
async def add_purchase(
    investment_id: str,
    data: PurchaseCreateRequest,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentMutationResponse:
    """Add a purchase to an existing investment."""
    result = await service.add_purchase_to_investment(
        investment_id,
        PurchaseCreate(amount_invested=data.amount_invested, investment_date=data.investment_date),
    )
    investment = unwrap(result)
    return InvestmentMutationResponse(
        investment=_investment_response(investment),
        message=result.message,
        is_existing_investment=True,
    )


@router.delete("/{investment_id}/purchases/{purchase_id}", response_model=InvestmentResponse)
async def delete_purchase(
    investment_id: str,
    purchase_id: str,
    service: InvestmentService = Depends(get_investment_service),
) -> InvestmentResponse:
    """Delete one purchase; totals are recomputed."""
    investment = unwrap(service.delete_purchase(investment_id, purchase_id))
    return _investment_response(investment)
