"""
Cent-quantized money arithmetic.

Every money operation converts its operands to integer cents (round-half-to-even
on value x 100), works in integer space and converts back. Repeated additions
across many purchases therefore never accumulate binary floating-point error.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Iterable, Optional, Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Token counts are not money; keep them at sub-satoshi resolution.
QUANTITY_QUANTUM = Decimal("1e-12")


def to_decimal(value: Optional[Number]) -> Decimal:
    """
    Convert a number to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary expansion.
    None converts to zero.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


class DecimalMath:
    """Money arithmetic primitives in integer cents."""

    @staticmethod
    def to_cents(value: Optional[Number]) -> int:
        return int((to_decimal(value) * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))

    @staticmethod
    def from_cents(cents: int) -> Decimal:
        return (Decimal(cents) / HUNDRED).quantize(CENT)

    @classmethod
    def quantize(cls, value: Optional[Number]) -> Decimal:
        """Round a value to whole cents."""
        return cls.from_cents(cls.to_cents(value))

    @classmethod
    def add(cls, a: Number, b: Number) -> Decimal:
        return cls.from_cents(cls.to_cents(a) + cls.to_cents(b))

    @classmethod
    def subtract(cls, a: Number, b: Number) -> Decimal:
        return cls.from_cents(cls.to_cents(a) - cls.to_cents(b))

    @classmethod
    def multiply(cls, a: Number, b: Number) -> Decimal:
        """
        Multiply and round the product to cents.

        Operands are not rounded first: a token count of 0.0225 times a price of
        5000 is 112.50, not 0.02 x 5000.
        """
        return cls.from_cents(cls.to_cents(to_decimal(a) * to_decimal(b)))

    @classmethod
    def divide(cls, a: Number, b: Number) -> Decimal:
        """Divide and round to cents. Division by zero returns 0."""
        divisor = to_decimal(b)
        if divisor == ZERO:
            return cls.from_cents(0)
        return cls.from_cents(cls.to_cents(to_decimal(a) / divisor))

    @classmethod
    def percentage(cls, value: Number, total: Number) -> Decimal:
        """Return value as a percentage of total, in cents precision. Zero total returns 0."""
        whole = to_decimal(total)
        if whole == ZERO:
            return cls.from_cents(0)
        return cls.from_cents(cls.to_cents(to_decimal(value) / whole * HUNDRED))

    @classmethod
    def sum(cls, values: Iterable[Number]) -> Decimal:
        """Sum money values in integer cents (order-independent)."""
        return cls.from_cents(sum((cls.to_cents(v) for v in values), 0))

    @staticmethod
    def quantity(amount: Number, unit_price: Number) -> Decimal:
        """Units bought for amount at unit_price. Non-positive price returns 0."""
        price = to_decimal(unit_price)
        if price <= ZERO:
            return ZERO
        return (to_decimal(amount) / price).quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_EVEN)

    @staticmethod
    def sum_quantities(values: Iterable[Number]) -> Decimal:
        """Exact sum of unit counts."""
        return sum((to_decimal(v) for v in values), ZERO)

    @staticmethod
    def unit_price(amount: Number, quantity: Number) -> Decimal:
        """Price per unit when amount bought quantity units. Non-positive quantity returns 0."""
        units = to_decimal(quantity)
        if units <= ZERO:
            return ZERO
        return (to_decimal(amount) / units).quantize(QUANTITY_QUANTUM, rounding=ROUND_HALF_EVEN)
