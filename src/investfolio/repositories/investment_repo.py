"""Persistence of the investments collection in the key-value store."""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from investfolio.core.exceptions import PersistenceError
from investfolio.core.timezone import parse_datetime, parse_value_date
from investfolio.domain.models import (
    CryptoHolding,
    Investment,
    InvestmentCategory,
    Purchase,
)
from investfolio.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)

INVESTMENTS_KEY = "investments"
BACKUP_KEY_PREFIX = "investments_backup_"


def is_numeric(value: Any) -> bool:
    """Return True for JSON numbers and decimal strings (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    if isinstance(value, str):
        try:
            return Decimal(value.strip()).is_finite()
        except InvalidOperation:
            return False
    return False


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def _optional_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return parse_datetime(value)


# =============================================================================
# RECORD CODEC
# =============================================================================


def purchase_to_record(purchase: Purchase) -> dict:
    return {
        "id": purchase.purchase_id,
        "investmentDate": purchase.investment_date.isoformat(),
        "createdAt": purchase.created_at.isoformat(),
        "amountInvested": str(purchase.amount_invested),
        "tokensAcquired": str(purchase.tokens_acquired),
        "pricePerTokenUSD": str(purchase.price_per_token_usd),
    }


def purchase_from_record(record: dict) -> Purchase:
    return Purchase(
        purchase_id=record["id"],
        investment_date=parse_value_date(record["investmentDate"]),
        created_at=parse_datetime(record["createdAt"]),
        amount_invested=_decimal(record.get("amountInvested")),
        tokens_acquired=_decimal(record.get("tokensAcquired")),
        price_per_token_usd=_decimal(record.get("pricePerTokenUSD")),
    )


def investment_to_record(investment: Investment) -> dict:
    """Serialize an Investment to its persisted camelCase record."""
    record = {
        "id": investment.investment_id,
        "name": investment.name,
        "category": investment.category.value,
        "createdAt": investment.created_at.isoformat(),
        "updatedAt": investment.updated_at.isoformat() if investment.updated_at else None,
        "purchases": [purchase_to_record(p) for p in investment.purchases],
        "totalInvested": str(investment.total_invested),
        "currentMarketValue": str(investment.current_market_value),
        "unrealizedGains": str(investment.unrealized_gains),
        "realizedGains": str(investment.realized_gains),
    }
    if investment.crypto is not None:
        crypto = investment.crypto
        record.update(
            {
                "coinId": crypto.coin_id,
                "coinSymbol": crypto.coin_symbol,
                "coinThumb": crypto.coin_thumb,
                "currentPriceUSD": (
                    str(crypto.current_price_usd) if crypto.current_price_usd is not None else None
                ),
                "totalTokens": str(crypto.total_tokens),
                "lastPriceUpdate": (
                    crypto.last_price_update.isoformat() if crypto.last_price_update else None
                ),
            }
        )
    return record


def investment_from_record(record: dict) -> Investment:
    """
    Deserialize a ledger-shaped record.

    Raises KeyError/ValueError on malformed records.
    """
    category = InvestmentCategory(record["category"])
    crypto = None
    if category is InvestmentCategory.CRYPTOCURRENCY:
        crypto = CryptoHolding(
            coin_id=record.get("coinId"),
            coin_symbol=record.get("coinSymbol"),
            coin_thumb=record.get("coinThumb"),
            current_price_usd=_optional_decimal(record.get("currentPriceUSD")),
            total_tokens=_decimal(record.get("totalTokens")),
            last_price_update=_optional_datetime(record.get("lastPriceUpdate")),
        )
    return Investment(
        investment_id=record["id"],
        name=record["name"],
        category=category,
        created_at=parse_datetime(record["createdAt"]),
        purchases=[purchase_from_record(p) for p in record.get("purchases", [])],
        total_invested=_decimal(record.get("totalInvested")),
        current_market_value=_decimal(record.get("currentMarketValue")),
        unrealized_gains=_decimal(record.get("unrealizedGains")),
        realized_gains=_decimal(record.get("realizedGains")),
        updated_at=_optional_datetime(record.get("updatedAt")),
        crypto=crypto,
    )


# =============================================================================
# REPOSITORY
# =============================================================================


class InvestmentRepository:
    """
    Loads and saves the whole investments collection.

    The collection is read and written as one value (whole-collection
    last-writer-wins).
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def load_raw(self) -> list[dict]:
        """Return the persisted records as stored, without interpretation."""
        raw = self._store.get(INVESTMENTS_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Investments collection is not a list; ignoring", extra={"key": INVESTMENTS_KEY})
            return []
        return raw

    def load_all(self) -> list[Investment]:
        """Load ledger-shaped records; unreadable records are skipped."""
        investments = []
        for record in self.load_raw():
            investment = _decode(record)
            if investment is not None:
                investments.append(investment)
        return investments

    def save_all(self, investments: list[Investment]) -> None:
        """
        Persist investments as the readable part of the collection.

        Readable records are replaced by id or dropped when absent from
        investments. Unreadable records stay where they are. Raises
        PersistenceError if the store rejects the write.
        """
        pending = {i.investment_id: investment_to_record(i) for i in investments}
        records = []
        for raw in self.load_raw():
            if _decode(raw, log=False) is None:
                records.append(raw)
            elif raw.get("id") in pending:
                records.append(pending.pop(raw["id"]))
        records.extend(pending.values())
        self.save_records(records)

    def replace_all(self, investments: list[Investment]) -> None:
        """Overwrite the whole collection, unreadable records included."""
        self.save_records([investment_to_record(i) for i in investments])

    def save_records(self, records: list[dict]) -> None:
        if not self._store.set(INVESTMENTS_KEY, records):
            raise PersistenceError(INVESTMENTS_KEY)

    def get(self, investment_id: str) -> Optional[Investment]:
        return next((i for i in self.load_all() if i.investment_id == investment_id), None)

    def write_backup(self, records: list[dict], now: datetime) -> str:
        """
        Write a timestamped copy of records and return its key.

        Raises PersistenceError if the store rejects the backup.
        """
        key = f"{BACKUP_KEY_PREFIX}{now.strftime('%Y%m%dT%H%M%S%fZ')}"
        if not self._store.set(key, records):
            raise PersistenceError(key, reason="backup rejected")
        logger.info("Wrote investments backup", extra={"key": key, "record_count": len(records)})
        return key

    def list_backups(self) -> list[str]:
        return sorted(self._store.keys(BACKUP_KEY_PREFIX))


def _record_id(record: Any) -> Optional[str]:
    return record.get("id") if isinstance(record, dict) else None


def _decode(record: Any, log: bool = True) -> Optional[Investment]:
    try:
        return investment_from_record(record)
    except (KeyError, TypeError, ValueError, InvalidOperation, AttributeError) as exc:
        if log:
            logger.warning(
                "Skipping unreadable investment record",
                extra={"investment_id": _record_id(record), "error": str(exc)},
            )
        return None
