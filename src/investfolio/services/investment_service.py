"""Investment service: the caller-facing orchestrator of the portfolio core."""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional

from investfolio.config.settings import get_settings
from investfolio.core.exceptions import (
    AppError,
    MigrationValidationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from investfolio.core.timezone import now_utc, today_local
from investfolio.domain.models import Investment, Purchase
from investfolio.domain.views import (
    InvestmentDetails,
    MigrationOutcome,
    Quote,
    ServiceResult,
)
from investfolio.repositories.investment_repo import InvestmentRepository
from investfolio.services import ledger
from investfolio.services.ledger import InvestmentCreate, PurchaseCreate
from investfolio.services.market_data_service import MarketDataService
from investfolio.services.performance_calculator import PerformanceCalculator
from investfolio.services.schema_migrator import SchemaMigrator

logger = logging.getLogger(__name__)

# Metadata callers may change; values are always derived from purchases
EDITABLE_METADATA = frozenset({"name"})


class InvestmentService:
    """
    Service for managing investments and their purchase ledgers.

    On construction it migrates legacy data and then recomputes every stored
    total (a no-op on consistent data). Public operations never raise for
    expected failures; they return a ServiceResult instead.
    """

    def __init__(
        self,
        repository: InvestmentRepository,
        market_data: MarketDataService,
        migrator: Optional[SchemaMigrator] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._repository = repository
        self._market_data = market_data
        self._migrator = migrator or SchemaMigrator(repository)
        self._clock = clock
        self._historical_limit_days = get_settings().historical_limit_days

        self.migration_outcome = self._run_migration()
        self.repaired_count = self._self_heal()

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------

    def _run_migration(self) -> MigrationOutcome:
        try:
            return self._migrator.run(now=self._clock())
        except MigrationValidationError as exc:
            logger.error(
                "Investment data migration failed",
                extra={"backup_key": exc.backup_key, "invalid_records": len(exc.errors)},
            )
            raise

    def _self_heal(self) -> int:
        """Recompute stored totals; persist only if something changed."""
        investments = self._repository.load_all()
        healed = [ledger.recalculate_totals(i) for i in investments]
        changed = sum(1 for before, after in zip(investments, healed) if before != after)
        if not changed:
            return 0

        try:
            self._repository.save_all(healed)
        except PersistenceError as exc:
            logger.error("Could not persist repaired totals", extra={"error": exc.message})
            return 0
        logger.info("Repaired investment totals", extra={"repaired_count": changed})
        return changed

    async def start(self) -> None:
        """Start background work (periodic cache cleanup)."""
        self._market_data.cache.start_cleanup()

    async def aclose(self) -> None:
        await self._market_data.cache.dispose()
        await self._market_data.aclose()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_investments(self) -> list[Investment]:
        return self._repository.load_all()

    def get_investment_statistics(self) -> ServiceResult:
        """Portfolio-wide totals, gain and profitable/unprofitable counts."""
        performance = PerformanceCalculator.portfolio_performance(self._repository.load_all())
        return ServiceResult.ok(performance)

    def get_investment_details(self, investment_id: str) -> ServiceResult:
        """An investment with per-purchase performance at its last known price."""
        try:
            investment = self._get(investment_id)
        except AppError as exc:
            return self._failure("get_investment_details", exc, investment_id=investment_id)

        price = None
        if investment.crypto is not None and investment.crypto.has_live_price:
            price = investment.crypto.current_price_usd
        performance = PerformanceCalculator.investment_performance(investment.purchases, price)
        return ServiceResult.ok(InvestmentDetails(investment=investment, performance=performance))

    async def search_cryptocurrencies(self, query: str) -> ServiceResult:
        try:
            results = await self._market_data.search_coins(query)
        except AppError as exc:
            return self._failure("search_cryptocurrencies", exc, query=query)
        return ServiceResult.ok(results)

    async def get_price_history(self, coin_id: str, days: int = 30) -> ServiceResult:
        try:
            history = await self._market_data.get_market_chart(coin_id, days)
        except AppError as exc:
            return self._failure("get_price_history", exc, coin_id=coin_id, days=days)
        return ServiceResult.ok(history)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add_investment(self, data: InvestmentCreate) -> ServiceResult:
        """
        Add an investment, or a purchase to the holding of the same coin.

        Cryptocurrency purchases are priced at the current quote when the value
        date is today, else at the historical quote for that date.
        """
        try:
            return await self._add_investment(data)
        except AppError as exc:
            return self._failure("add_investment", exc, coin_id=data.coin_id, investment_name=data.name)

    async def _add_investment(self, data: InvestmentCreate) -> ServiceResult:
        now = self._clock()
        today = today_local(now)
        errors = ledger.validate_investment_input(data, today, self._historical_limit_days)
        if errors:
            raise ValidationError.from_errors(errors, subject="investment")

        category = ledger.parse_category(data.category)
        value_date = data.investment_date or today
        investments = self._repository.load_all()

        if not category.is_tokenized:
            investment = ledger.create_investment(data.name, category, now=now)
            purchase = ledger.create_purchase(data.amount_invested, value_date, category, now=now)
            investment = ledger.add_purchase(investment, purchase)
            self._repository.save_all([*investments, investment])
            logger.info(
                "Added investment",
                extra={"investment_id": investment.investment_id, "category": category.value},
            )
            return ServiceResult.ok(investment, f"Successfully added investment: {investment.name}")

        quote = await self._quote_for(data.coin_id, value_date, today)
        purchase = ledger.create_purchase(
            data.amount_invested, value_date, category, unit_price=quote.price_usd, now=now
        )
        existing = next(
            (i for i in investments if i.is_crypto and i.coin_id == data.coin_id),
            None,
        )

        if existing is not None:
            updated = self._with_purchase(existing, purchase, quote, now)
            self._repository.save_all([updated if i is existing else i for i in investments])
            symbol = updated.crypto.coin_symbol
            logger.info(
                "Added purchase to existing holding",
                extra={
                    "investment_id": updated.investment_id,
                    "coin_id": data.coin_id,
                    "purchase_count": len(updated.purchases),
                },
            )
            return ServiceResult.ok(
                updated,
                f"Added {purchase.tokens_acquired:.8f} {symbol} to your existing investment. "
                f"You now have {updated.crypto.total_tokens:.8f} {symbol} "
                f"worth ${updated.current_market_value:.2f}.",
                is_existing_investment=True,
            )

        investment = ledger.create_investment(
            data.name,
            category,
            coin_id=data.coin_id,
            coin_symbol=data.coin_symbol,
            coin_thumb=data.coin_thumb,
            now=now,
        )
        investment = self._with_purchase(investment, purchase, quote, now)
        self._repository.save_all([*investments, investment])
        logger.info(
            "Added investment",
            extra={"investment_id": investment.investment_id, "coin_id": data.coin_id},
        )
        return ServiceResult.ok(
            investment,
            f"Successfully purchased {purchase.tokens_acquired:.8f} {investment.crypto.coin_symbol} "
            f"at ${quote.price_usd:.4f} per token.",
        )

    async def add_purchase_to_investment(self, investment_id: str, data: PurchaseCreate) -> ServiceResult:
        """Append a purchase to an existing investment, pricing it for crypto."""
        try:
            now = self._clock()
            today = today_local(now)
            investments = self._repository.load_all()
            investment = _find(investments, investment_id)

            errors = ledger.validate_purchase_input(
                data, investment.category, today, self._historical_limit_days
            )
            if errors:
                raise ValidationError.from_errors(errors, subject="purchase")

            value_date = data.investment_date or today
            if investment.is_crypto and investment.coin_id:
                quote = await self._quote_for(investment.coin_id, value_date, today)
                purchase = ledger.create_purchase(
                    data.amount_invested,
                    value_date,
                    investment.category,
                    unit_price=quote.price_usd,
                    now=now,
                )
                updated = self._with_purchase(investment, purchase, quote, now)
            else:
                purchase = ledger.create_purchase(
                    data.amount_invested, value_date, investment.category, now=now
                )
                updated = ledger.add_purchase(investment, purchase)

            self._save_replacing(investments, updated)
        except AppError as exc:
            return self._failure("add_purchase_to_investment", exc, investment_id=investment_id)

        logger.info(
            "Added purchase",
            extra={"investment_id": investment_id, "purchase_count": len(updated.purchases)},
        )
        return ServiceResult.ok(updated, "Purchase added", is_existing_investment=True)

    def update_investment_metadata(self, investment_id: str, updates: Mapping[str, Any]) -> ServiceResult:
        """
        Change display metadata. Only the name is editable; other keys are ignored.
        """
        ignored = sorted(set(updates) - EDITABLE_METADATA)
        try:
            investments = self._repository.load_all()
            investment = _find(investments, investment_id)
            now = self._clock()
            if "name" in updates:
                updated = ledger.rename(investment, updates["name"], now=now)
            else:
                updated = replace(investment, updated_at=now)
            self._save_replacing(investments, updated)
        except AppError as exc:
            return self._failure("update_investment_metadata", exc, investment_id=investment_id)

        if ignored:
            logger.warning(
                "Ignored non-editable fields",
                extra={"investment_id": investment_id, "fields": ignored},
            )
        return ServiceResult.ok(updated, "Investment updated")

    def delete_investment(self, investment_id: str) -> ServiceResult:
        """Delete an investment together with all of its purchases."""
        try:
            investments = self._repository.load_all()
            _find(investments, investment_id)
            remaining = [i for i in investments if i.investment_id != investment_id]
            self._repository.save_all(remaining)
        except AppError as exc:
            return self._failure("delete_investment", exc, investment_id=investment_id)

        logger.info(
            "Deleted investment",
            extra={"investment_id": investment_id, "remaining_count": len(remaining)},
        )
        return ServiceResult.ok(None, "Investment deleted")

    def delete_purchase(self, investment_id: str, purchase_id: str) -> ServiceResult:
        """Remove one purchase and recompute totals (zero purchases is allowed)."""
        try:
            investments = self._repository.load_all()
            investment = _find(investments, investment_id)
            updated = ledger.remove_purchase(investment, purchase_id)
            self._save_replacing(investments, updated)
        except AppError as exc:
            return self._failure(
                "delete_purchase", exc, investment_id=investment_id, purchase_id=purchase_id
            )

        logger.info(
            "Deleted purchase",
            extra={"investment_id": investment_id, "remaining_purchases": len(updated.purchases)},
        )
        return ServiceResult.ok(updated, "Purchase deleted")

    async def update_crypto_prices(self) -> ServiceResult:
        """
        Refresh live prices of every crypto holding in one batch lookup.

        Holdings without a new quote keep their previous price.
        """
        try:
            investments = self._repository.load_all()
            holdings = [i for i in investments if i.is_crypto and i.coin_id]
            if not holdings:
                return ServiceResult.ok([], "No cryptocurrency holdings to update")

            quotes = await self._market_data.batch_current_quotes([i.coin_id for i in holdings])
            now = self._clock()
            priced = {
                i.investment_id: ledger.apply_price(i, quotes[i.coin_id].price_usd, now)
                for i in holdings
                if i.coin_id in quotes
            }
            if priced:
                self._repository.save_all([priced.get(i.investment_id, i) for i in investments])
        except AppError as exc:
            return self._failure("update_crypto_prices", exc)

        logger.info(
            "Updated crypto prices",
            extra={"crypto_count": len(holdings), "updated_count": len(priced)},
        )
        return ServiceResult.ok(
            list(priced.values()),
            f"Updated prices for {len(priced)} of {len(holdings)} cryptocurrency holdings",
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get(self, investment_id: str) -> Investment:
        return _find(self._repository.load_all(), investment_id)

    async def _quote_for(self, coin_id: str, value_date: date, today: date) -> Quote:
        if ledger.is_historical_date(value_date, today):
            return await self._market_data.get_historical_quote(coin_id, value_date)
        return await self._market_data.get_current_quote(coin_id)

    @staticmethod
    def _with_purchase(investment: Investment, purchase: Purchase, quote: Quote, now: datetime) -> Investment:
        """Append purchase; a current-date quote also becomes the live price."""
        updated = ledger.add_purchase(investment, purchase)
        if not quote.is_historical:
            updated = ledger.apply_price(updated, quote.price_usd, now)
        return updated

    def _save_replacing(self, investments: list[Investment], updated: Investment) -> None:
        self._repository.save_all(
            [updated if i.investment_id == updated.investment_id else i for i in investments]
        )

    @staticmethod
    def _failure(operation: str, exc: AppError, **context: Any) -> ServiceResult:
        logger.warning(
            "Investment operation failed",
            extra={"operation": operation, "error_code": exc.code, "error": exc.message, **context},
        )
        return ServiceResult.fail(exc)


def _find(investments: list[Investment], investment_id: str) -> Investment:
    investment = next((i for i in investments if i.investment_id == investment_id), None)
    if investment is None:
        raise NotFoundError("Investment", investment_id)
    return investment
