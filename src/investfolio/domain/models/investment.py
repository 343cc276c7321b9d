"""Investment aggregate and its purchase ledger."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from investfolio.domain.models.enums import InvestmentCategory


@dataclass
class Purchase:
    """
    One buy event in an investment's ledger.

    Owned by exactly one Investment; has no lifecycle of its own.
    For non-tokenized categories tokens_acquired is a unit count (1 per purchase).
    """

    purchase_id: str
    investment_date: date
    created_at: datetime
    amount_invested: Decimal
    tokens_acquired: Decimal
    price_per_token_usd: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class CryptoHolding:
    """
    Cryptocurrency-only payload of an Investment.

    coin_id references the price service's asset identity; it is not owned here.
    """

    coin_id: Optional[str] = None
    coin_symbol: Optional[str] = None
    coin_thumb: Optional[str] = None
    current_price_usd: Optional[Decimal] = None
    total_tokens: Decimal = field(default_factory=lambda: Decimal("0"))
    last_price_update: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.coin_symbol:
            self.coin_symbol = self.coin_symbol.upper()

    @property
    def has_live_price(self) -> bool:
        return self.current_price_usd is not None and self.current_price_usd > 0


@dataclass
class Investment:
    """
    Holding of one asset, composed of one or more purchases.

    IMPORTANT: totals are derived from purchases. Never edit them directly;
    always run recalculate_totals after changing purchases or price.
    """

    investment_id: str
    name: str
    category: InvestmentCategory
    created_at: datetime
    purchases: list[Purchase] = field(default_factory=list)
    total_invested: Decimal = field(default_factory=lambda: Decimal("0"))
    current_market_value: Decimal = field(default_factory=lambda: Decimal("0"))
    unrealized_gains: Decimal = field(default_factory=lambda: Decimal("0"))
    realized_gains: Decimal = field(default_factory=lambda: Decimal("0"))
    updated_at: Optional[datetime] = None
    crypto: Optional[CryptoHolding] = None

    def __post_init__(self) -> None:
        if isinstance(self.category, str):
            self.category = InvestmentCategory(self.category)

    @property
    def is_crypto(self) -> bool:
        return self.category is InvestmentCategory.CRYPTOCURRENCY

    @property
    def coin_id(self) -> Optional[str]:
        return self.crypto.coin_id if self.crypto else None

    def find_purchase(self, purchase_id: str) -> Optional[Purchase]:
        return next((p for p in self.purchases if p.purchase_id == purchase_id), None)
