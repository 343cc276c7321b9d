"""
Purchase ledger: investment factory, purchase validation and totals.

Every function here is pure. Investments are never mutated in place; each
operation returns a new value with totals recomputed from the purchases.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, Union

from investfolio.core.decimal_math import DecimalMath, Number, ZERO, to_decimal
from investfolio.core.exceptions import FieldError, NotFoundError, ValidationError
from investfolio.core.timezone import now_utc, today_local
from investfolio.domain.models import (
    CryptoHolding,
    Investment,
    InvestmentCategory,
    Purchase,
)

DEFAULT_HISTORICAL_LIMIT_DAYS = 365


@dataclass
class InvestmentCreate:
    """Input data for adding an investment (or a purchase of a held coin)."""

    name: str
    category: Union[InvestmentCategory, str]
    amount_invested: Number
    investment_date: Optional[date] = None
    coin_id: Optional[str] = None
    coin_symbol: Optional[str] = None
    coin_thumb: Optional[str] = None


@dataclass
class PurchaseCreate:
    """Input data for adding a purchase to an existing investment."""

    amount_invested: Number
    investment_date: Optional[date] = None


# =============================================================================
# VALIDATION
# =============================================================================


def parse_category(value: Union[InvestmentCategory, str, None]) -> Optional[InvestmentCategory]:
    """Return the category for value, or None if it is not a known category."""
    if isinstance(value, InvestmentCategory):
        return value
    try:
        return InvestmentCategory(value)
    except ValueError:
        return None


def validate_amount(value: Optional[Number], field: str = "amount_invested") -> list[FieldError]:
    try:
        amount = to_decimal(value)
    except ValueError:
        return [FieldError(field, "must be a number")]
    if value is None or amount <= ZERO:
        return [FieldError(field, "must be greater than 0")]
    return []


def validate_investment_date(
    investment_date: date,
    category: Optional[InvestmentCategory],
    today: date,
    historical_limit_days: int = DEFAULT_HISTORICAL_LIMIT_DAYS,
) -> list[FieldError]:
    """
    Check a purchase value date.

    Value dates may not be in the future. Cryptocurrency dates must also be
    within the price service's history window.
    """
    if investment_date > today:
        return [FieldError("investment_date", "cannot be in the future")]
    if category is InvestmentCategory.CRYPTOCURRENCY:
        oldest = today - timedelta(days=historical_limit_days)
        if investment_date < oldest:
            return [
                FieldError(
                    "investment_date",
                    f"cannot be more than {historical_limit_days} days in the past "
                    f"for cryptocurrency (earliest {oldest.isoformat()})",
                )
            ]
    return []


def validate_investment_input(
    data: InvestmentCreate,
    today: date,
    historical_limit_days: int = DEFAULT_HISTORICAL_LIMIT_DAYS,
) -> list[FieldError]:
    """Collect every violated field of an add-investment request."""
    errors = _validate_identity(data.name, data.category, data.coin_id, data.coin_symbol)
    errors.extend(validate_amount(data.amount_invested))
    category = parse_category(data.category)
    value_date = data.investment_date or today
    errors.extend(validate_investment_date(value_date, category, today, historical_limit_days))
    return errors


def validate_purchase_input(
    data: PurchaseCreate,
    category: InvestmentCategory,
    today: date,
    historical_limit_days: int = DEFAULT_HISTORICAL_LIMIT_DAYS,
) -> list[FieldError]:
    errors = validate_amount(data.amount_invested)
    value_date = data.investment_date or today
    errors.extend(validate_investment_date(value_date, category, today, historical_limit_days))
    return errors


def _validate_identity(
    name: Optional[str],
    category: Union[InvestmentCategory, str, None],
    coin_id: Optional[str],
    coin_symbol: Optional[str],
) -> list[FieldError]:
    errors = []
    if not name or not name.strip():
        errors.append(FieldError("name", "is required"))
    parsed = parse_category(category)
    if parsed is None:
        errors.append(FieldError("category", f"unknown category: {category!r}"))
    elif parsed is InvestmentCategory.CRYPTOCURRENCY:
        if not coin_id:
            errors.append(FieldError("coin_id", "is required for cryptocurrency"))
        if not coin_symbol:
            errors.append(FieldError("coin_symbol", "is required for cryptocurrency"))
    return errors


def validate_investment_record(investment: Investment) -> list[str]:
    """
    Structural check of a stored investment.

    Returns a list of problems; empty means the record is valid.
    """
    problems = []
    if not investment.investment_id:
        problems.append("missing id")
    if not investment.name or not investment.name.strip():
        problems.append("missing name")
    if not isinstance(investment.category, InvestmentCategory):
        problems.append(f"invalid category: {investment.category!r}")
    if investment.created_at is None:
        problems.append("missing createdAt")
    if investment.is_crypto and investment.crypto is None:
        problems.append("cryptocurrency investment without coin data")

    for index, purchase in enumerate(investment.purchases):
        label = f"purchase[{index}]"
        if not purchase.purchase_id:
            problems.append(f"{label}: missing id")
        if purchase.investment_date is None:
            problems.append(f"{label}: missing investmentDate")
        if purchase.created_at is None:
            problems.append(f"{label}: missing createdAt")
        if purchase.amount_invested is None or purchase.amount_invested <= ZERO:
            problems.append(f"{label}: amountInvested must be positive")
        if purchase.tokens_acquired is None or purchase.tokens_acquired <= ZERO:
            problems.append(f"{label}: tokensAcquired must be positive")
        if purchase.price_per_token_usd is None or purchase.price_per_token_usd < ZERO:
            problems.append(f"{label}: pricePerTokenUSD cannot be negative")
    return problems


# =============================================================================
# FACTORY
# =============================================================================


def create_investment(
    name: str,
    category: Union[InvestmentCategory, str],
    coin_id: Optional[str] = None,
    coin_symbol: Optional[str] = None,
    coin_thumb: Optional[str] = None,
    now: Optional[datetime] = None,
    investment_id: Optional[str] = None,
) -> Investment:
    """
    Create an investment with no purchases and zeroed totals.

    Raises:
        ValidationError: listing every missing or invalid field.
    """
    errors = _validate_identity(name, category, coin_id, coin_symbol)
    if errors:
        raise ValidationError.from_errors(errors, subject="investment")

    parsed = parse_category(category)
    crypto = None
    if parsed is InvestmentCategory.CRYPTOCURRENCY:
        crypto = CryptoHolding(coin_id=coin_id, coin_symbol=coin_symbol, coin_thumb=coin_thumb)

    return Investment(
        investment_id=investment_id or str(uuid.uuid4()),
        name=name.strip(),
        category=parsed,
        created_at=now or now_utc(),
        crypto=crypto,
    )


def create_purchase(
    amount_invested: Number,
    investment_date: date,
    category: InvestmentCategory,
    unit_price: Optional[Number] = None,
    now: Optional[datetime] = None,
    purchase_id: Optional[str] = None,
) -> Purchase:
    """
    Build a purchase record.

    Cryptocurrency purchases are priced per token: tokens = amount / unit_price.
    Other categories record one unit per purchase at no unit price.

    Raises:
        ValidationError: amount is not positive, or a token price is missing.
    """
    errors = validate_amount(amount_invested)
    if category.is_tokenized and (unit_price is None or to_decimal(unit_price) <= ZERO):
        errors.append(FieldError("price_per_token_usd", "must be greater than 0"))
    if errors:
        raise ValidationError.from_errors(errors, subject="purchase")

    amount = DecimalMath.quantize(amount_invested)
    if category.is_tokenized:
        price = to_decimal(unit_price)
        tokens = DecimalMath.quantity(amount, price)
    else:
        price = ZERO
        tokens = Decimal("1")

    return Purchase(
        purchase_id=purchase_id or str(uuid.uuid4()),
        investment_date=investment_date,
        created_at=now or now_utc(),
        amount_invested=amount,
        tokens_acquired=tokens,
        price_per_token_usd=price,
    )


# =============================================================================
# LEDGER OPERATIONS
# =============================================================================


def add_purchase(investment: Investment, purchase: Purchase) -> Investment:
    """Return a copy of investment with purchase appended and totals recomputed."""
    return recalculate_totals(replace(investment, purchases=[*investment.purchases, purchase]))


def remove_purchase(investment: Investment, purchase_id: str) -> Investment:
    """
    Return a copy of investment without the purchase.

    An investment may be left with zero purchases.

    Raises:
        NotFoundError: no purchase with that id.
    """
    remaining = [p for p in investment.purchases if p.purchase_id != purchase_id]
    if len(remaining) == len(investment.purchases):
        raise NotFoundError("Purchase", purchase_id)
    return recalculate_totals(replace(investment, purchases=remaining))


def apply_price(investment: Investment, price: Number, as_of: Optional[datetime] = None) -> Investment:
    """Set the live unit price of a crypto holding and recompute its value."""
    if investment.crypto is None:
        return investment
    crypto = replace(
        investment.crypto,
        current_price_usd=to_decimal(price),
        last_price_update=as_of or now_utc(),
    )
    return recalculate_totals(replace(investment, crypto=crypto))


def rename(investment: Investment, name: str, now: Optional[datetime] = None) -> Investment:
    """Return a copy with a new display name. Values are never edited here."""
    if not name or not name.strip():
        raise ValidationError.from_errors([FieldError("name", "is required")], subject="investment")
    return replace(investment, name=name.strip(), updated_at=now or now_utc())


def recalculate_totals(investment: Investment) -> Investment:
    """
    Recompute every derived field from the purchases.

    Without a live price, market value falls back to the amount invested
    (no gain or loss until priced). Idempotent.
    """
    total_invested = DecimalMath.sum(p.amount_invested for p in investment.purchases)
    crypto = investment.crypto
    market_value = total_invested

    if crypto is not None:
        total_tokens = DecimalMath.sum_quantities(p.tokens_acquired for p in investment.purchases)
        crypto = replace(crypto, total_tokens=total_tokens)
        if crypto.has_live_price:
            market_value = DecimalMath.multiply(total_tokens, crypto.current_price_usd)

    return replace(
        investment,
        purchases=list(investment.purchases),
        total_invested=total_invested,
        current_market_value=market_value,
        unrealized_gains=DecimalMath.subtract(market_value, total_invested),
        realized_gains=DecimalMath.quantize(investment.realized_gains),
        crypto=crypto,
    )


def is_historical_date(investment_date: date, today: Optional[date] = None) -> bool:
    """A value date before today (date-only, configured calendar) needs a historical quote."""
    return investment_date < (today or today_local())
