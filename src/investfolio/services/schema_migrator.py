"""
One-way migration of legacy flat investment records to the ledger schema.

Legacy records carry a single amount and a single current value. Ledger records
carry a purchase list with totals derived from it. Migration synthesizes
purchases, validates the result, and writes a timestamped backup of the
original collection before anything is committed.
"""

import logging
import uuid
from datetime import date, datetime
from decimal import InvalidOperation
from typing import Any, Optional

from investfolio.core.decimal_math import DecimalMath, ZERO, to_decimal
from investfolio.core.exceptions import MigrationValidationError
from investfolio.core.timezone import now_utc, parse_datetime, parse_value_date, today_local
from investfolio.domain.models import (
    CryptoHolding,
    Investment,
    InvestmentCategory,
    Purchase,
    SchemaShape,
)
from investfolio.domain.views import MigrationOutcome, MigrationReport, MigrationValidation
from investfolio.repositories.investment_repo import (
    InvestmentRepository,
    investment_from_record,
    is_numeric,
)
from investfolio.services.ledger import recalculate_totals, validate_investment_record

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Unknown Investment"

_RECORD_ERRORS = (KeyError, TypeError, ValueError, InvalidOperation, OverflowError)


class LegacyRecordError(ValueError):
    """A legacy record cannot be turned into a ledger investment."""


def detect_shape(record: Any) -> SchemaShape:
    """A record is ledger iff it has a purchases list and numeric totals."""
    if (
        isinstance(record, dict)
        and isinstance(record.get("purchases"), list)
        and is_numeric(record.get("totalInvested"))
        and is_numeric(record.get("currentMarketValue"))
    ):
        return SchemaShape.LEDGER
    return SchemaShape.LEGACY


class SchemaMigrator:
    """Upgrades the persisted investments collection to the ledger schema."""

    def __init__(self, repository: InvestmentRepository):
        self._repository = repository

    def needs_migration(self, records: list[Any]) -> bool:
        return any(detect_shape(r) is SchemaShape.LEGACY for r in records)

    def migrate_record(self, record: Any, now: Optional[datetime] = None) -> Investment:
        """
        Convert one record to an Investment.

        Ledger records are decoded unchanged. Legacy records get one synthesized
        purchase, or their embedded purchaseHistory when it is non-empty. A
        record with nothing invested keeps no purchases.

        Raises:
            LegacyRecordError, KeyError, ValueError: the record cannot be migrated.
        """
        if detect_shape(record) is SchemaShape.LEDGER:
            return investment_from_record(record)
        if not isinstance(record, dict):
            raise LegacyRecordError(f"record is not an object: {type(record).__name__}")

        now = now or now_utc()
        category = InvestmentCategory(record.get("category") or InvestmentCategory.OTHER.value)
        created_at = _first_datetime(record, ("createdAt", "date")) or now

        crypto = None
        if category is InvestmentCategory.CRYPTOCURRENCY:
            live_price = to_decimal(record.get("coinPriceUSD"))
            crypto = CryptoHolding(
                coin_id=record.get("coinId"),
                coin_symbol=record.get("coinSymbol"),
                coin_thumb=record.get("coinThumb"),
                current_price_usd=live_price if live_price > ZERO else None,
                last_price_update=_first_datetime(record, ("lastUpdated",)),
            )

        history = record.get("purchaseHistory")
        if isinstance(history, list) and history:
            purchases = [_history_purchase(entry, now) for entry in history]
        else:
            purchase = _synthesized_purchase(record, now)
            purchases = [purchase] if purchase is not None else []

        investment = Investment(
            investment_id=record.get("id") or str(uuid.uuid4()),
            name=(record.get("name") or DEFAULT_NAME).strip() or DEFAULT_NAME,
            category=category,
            created_at=created_at,
            purchases=purchases,
            updated_at=now,
            crypto=crypto,
        )
        return recalculate_totals(investment)

    def migrate_all(self, records: list[Any], now: Optional[datetime] = None) -> MigrationReport:
        """
        Migrate every record; a failing record is logged and excluded.

        One bad record never aborts the batch.
        """
        report = MigrationReport()
        for index, record in enumerate(records):
            try:
                report.migrated.append(self.migrate_record(record, now=now))
            except _RECORD_ERRORS as exc:
                name = record.get("name") if isinstance(record, dict) else None
                report.errors.append(
                    {"index": index, "investment_name": name or "Unknown", "error": str(exc)}
                )
                logger.error(
                    "Failed to migrate investment record",
                    extra={"index": index, "investment_name": name, "error": str(exc)},
                )

        logger.info(
            "Migrated investment records",
            extra={
                "original_count": len(records),
                "migrated_count": len(report.migrated),
                "error_count": len(report.errors),
            },
        )
        return report

    def validate_migration(self, original: list[Any], migrated: list[Investment]) -> MigrationValidation:
        """Re-validate migrated records; a count mismatch is only a warning."""
        validation = MigrationValidation()
        if len(original) != len(migrated):
            validation.warnings.append(
                f"Investment count mismatch: {len(original)} original vs {len(migrated)} migrated"
            )

        for index, investment in enumerate(migrated):
            problems = validate_investment_record(investment)
            if problems:
                validation.is_valid = False
                validation.errors.append(
                    {
                        "index": index,
                        "investment_id": investment.investment_id,
                        "investment_name": investment.name,
                        "errors": problems,
                    }
                )
        return validation

    def run(self, now: Optional[datetime] = None) -> MigrationOutcome:
        """
        Migrate the stored collection if it holds any legacy record.

        The original collection is backed up before the migrated set replaces
        it, whether or not validation passes. Already-ledger data is left
        untouched and no backup is written.

        Raises:
            MigrationValidationError: migrated records failed validation; the
                stored collection is unchanged.
            PersistenceError: the backup or the migrated set could not be written.
        """
        now = now or now_utc()
        original = self._repository.load_raw()
        if not self.needs_migration(original):
            return MigrationOutcome(
                migrated=False, original_count=len(original), migrated_count=len(original)
            )

        logger.info("Investment data migration needed", extra={"record_count": len(original)})
        report = self.migrate_all(original, now=now)
        validation = self.validate_migration(original, report.migrated)
        backup_key = self._repository.write_backup(original, now)

        if not validation.is_valid:
            logger.error(
                "Migration validation failed; original data preserved",
                extra={"backup_key": backup_key, "invalid_records": len(validation.errors)},
            )
            raise MigrationValidationError(validation.errors, backup_key=backup_key)

        self._repository.replace_all(report.migrated)
        logger.info(
            "Investment data migration complete",
            extra={
                "original_count": len(original),
                "migrated_count": len(report.migrated),
                "backup_key": backup_key,
                "warnings": validation.warnings,
            },
        )
        return MigrationOutcome(
            migrated=True,
            original_count=len(original),
            migrated_count=len(report.migrated),
            backup_key=backup_key,
            warnings=validation.warnings,
            errors=report.errors,
        )


def _synthesized_purchase(record: dict, now: datetime) -> Optional[Purchase]:
    """Build the single purchase of a flat record; None when nothing was invested."""
    amount = to_decimal(record.get("initialInvestment") or record.get("currentValue"))
    if amount <= ZERO:
        return None
    units = to_decimal(record.get("initialAmount") or 1)
    if units <= ZERO:
        raise LegacyRecordError("initialAmount must be positive")

    return Purchase(
        purchase_id=str(uuid.uuid4()),
        investment_date=_value_date(record.get("date") or record.get("createdAt"), now),
        created_at=now,
        amount_invested=DecimalMath.quantize(amount),
        tokens_acquired=units,
        price_per_token_usd=DecimalMath.unit_price(amount, units),
    )


def _history_purchase(entry: dict, now: datetime) -> Purchase:
    amount = to_decimal(entry.get("amount"))
    tokens = to_decimal(entry.get("tokens") or entry.get("amount"))
    price = to_decimal(entry.get("pricePerToken") or 1)
    return Purchase(
        purchase_id=entry.get("id") or str(uuid.uuid4()),
        investment_date=_value_date(entry.get("date"), now),
        created_at=now,
        amount_invested=DecimalMath.quantize(amount),
        tokens_acquired=tokens,
        price_per_token_usd=price,
    )


def _value_date(value: Any, now: datetime) -> date:
    if not value:
        return today_local(now)
    return parse_value_date(value)


def _first_datetime(record: dict, fields: tuple[str, ...]) -> Optional[datetime]:
    for field in fields:
        if record.get(field):
            return parse_datetime(record[field])
    return None
