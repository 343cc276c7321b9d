"""Valuation of purchases, holdings and the whole portfolio."""

from typing import Iterable, Optional

from investfolio.core.decimal_math import DecimalMath, Number, ZERO, to_decimal
from investfolio.domain.models import Investment, Purchase
from investfolio.domain.views import (
    InvestmentPerformance,
    PortfolioPerformance,
    PurchaseBreakdown,
    PurchasePerformance,
)


class PerformanceCalculator:
    """
    Derives gains and averages from ledgers and already-fetched prices.

    Pure: no I/O, never raises on valid numeric input. A current price of None
    means "not priced"; each purchase is then valued at its amount invested.
    """

    @staticmethod
    def purchase_performance(purchase: Purchase, current_price: Optional[Number]) -> PurchasePerformance:
        original_price = to_decimal(purchase.price_per_token_usd)

        if current_price is None:
            current_value = DecimalMath.quantize(purchase.amount_invested)
            price = original_price
        else:
            price = to_decimal(current_price)
            current_value = DecimalMath.multiply(purchase.tokens_acquired, price)

        unrealized_gain = DecimalMath.subtract(current_value, purchase.amount_invested)
        price_change = DecimalMath.subtract(price, original_price)
        return PurchasePerformance(
            current_value=current_value,
            unrealized_gain=unrealized_gain,
            unrealized_gain_percentage=DecimalMath.percentage(unrealized_gain, purchase.amount_invested),
            original_purchase_price=original_price,
            price_change=price_change,
            price_change_percentage=DecimalMath.percentage(price_change, original_price),
        )

    @classmethod
    def investment_performance(
        cls,
        purchases: list[Purchase],
        current_price: Optional[Number],
    ) -> InvestmentPerformance:
        """
        Aggregate performance across a holding's purchases.

        average_purchase_price is total invested / total tokens (weighted by
        the ledger, not a simple mean of unit prices).
        """
        if not purchases:
            return InvestmentPerformance()

        breakdown = [
            PurchaseBreakdown(purchase=p, performance=cls.purchase_performance(p, current_price))
            for p in purchases
        ]
        total_invested = DecimalMath.sum(p.amount_invested for p in purchases)
        total_tokens = DecimalMath.sum_quantities(p.tokens_acquired for p in purchases)

        if current_price is None:
            market_value = total_invested
        else:
            market_value = DecimalMath.multiply(total_tokens, current_price)

        unrealized = DecimalMath.subtract(market_value, total_invested)
        return InvestmentPerformance(
            total_invested=total_invested,
            total_tokens=total_tokens,
            current_market_value=market_value,
            unrealized_gains=unrealized,
            unrealized_gain_percentage=DecimalMath.percentage(unrealized, total_invested),
            average_purchase_price=DecimalMath.divide(total_invested, total_tokens),
            purchase_performances=breakdown,
        )

    @staticmethod
    def portfolio_performance(investments: Iterable[Investment]) -> PortfolioPerformance:
        """
        Roll up stored totals across investments.

        Profitable and unprofitable counts are strict: a holding with exactly
        zero gain counts as neither.
        """
        investments = list(investments)
        if not investments:
            return PortfolioPerformance()

        total_invested = DecimalMath.sum(i.total_invested for i in investments)
        total_current = DecimalMath.sum(i.current_market_value for i in investments)
        total_gains = DecimalMath.subtract(total_current, total_invested)

        profitable = 0
        unprofitable = 0
        for investment in investments:
            gain = DecimalMath.subtract(investment.current_market_value, investment.total_invested)
            if gain > ZERO:
                profitable += 1
            elif gain < ZERO:
                unprofitable += 1

        return PortfolioPerformance(
            total_invested=total_invested,
            total_current_value=total_current,
            total_unrealized_gains=total_gains,
            total_unrealized_gain_percentage=DecimalMath.percentage(total_gains, total_invested),
            profitable_investments=profitable,
            unprofitable_investments=unprofitable,
            investment_count=len(investments),
        )
