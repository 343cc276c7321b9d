"""
Unit tests for the purchase ledger.

Tests cover:
- Input validation (amounts, value dates, crypto identity)
- Investment and purchase factories
- Adding and removing purchases
- Totals recalculation (conservation, idempotence, live price)
- Structural record validation
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from investfolio.core.exceptions import NotFoundError, ValidationError
from investfolio.domain.models import InvestmentCategory
from investfolio.services import ledger
from investfolio.services.ledger import InvestmentCreate, PurchaseCreate
from tests.conftest import FIXED_NOW, TODAY, make_crypto_investment, make_purchase


# =============================================================================
# VALIDATION TESTS
# =============================================================================


class TestValidation:
    """Tests for request validation."""

    def test_valid_crypto_input(self):
        data = InvestmentCreate(
            name="Bitcoin",
            category="Cryptocurrency",
            amount_invested=100,
            coin_id="bitcoin",
            coin_symbol="btc",
        )

        assert ledger.validate_investment_input(data, TODAY) == []

    def test_collects_every_error(self):
        """
        GIVEN a crypto request without name, coin, or a positive amount
        WHEN it is validated
        THEN every violated field is reported
        """
        data = InvestmentCreate(name=" ", category="Cryptocurrency", amount_invested=0)

        errors = ledger.validate_investment_input(data, TODAY)

        assert {e.field for e in errors} == {"name", "coin_id", "coin_symbol", "amount_invested"}

    def test_unknown_category(self):
        data = InvestmentCreate(name="Thing", category="Collectibles", amount_invested=10)

        errors = ledger.validate_investment_input(data, TODAY)

        assert [e.field for e in errors] == ["category"]

    @pytest.mark.parametrize("amount", [0, -5, None])
    def test_non_positive_amount(self, amount):
        errors = ledger.validate_amount(amount)
        assert errors[0].message == "must be greater than 0"

    def test_non_numeric_amount(self):
        assert ledger.validate_amount("ten")[0].message == "must be a number"

    def test_future_date_rejected(self):
        errors = ledger.validate_investment_date(
            date(2024, 6, 16), InvestmentCategory.STOCKS, TODAY
        )
        assert errors[0].message == "cannot be in the future"

    def test_today_accepted(self):
        assert ledger.validate_investment_date(TODAY, InvestmentCategory.CRYPTOCURRENCY, TODAY) == []

    def test_crypto_date_beyond_history_window(self):
        """
        GIVEN a crypto value date more than 365 days ago
        WHEN it is validated
        THEN it is rejected with the earliest allowed date
        """
        errors = ledger.validate_investment_date(
            date(2023, 6, 15), InvestmentCategory.CRYPTOCURRENCY, TODAY, historical_limit_days=365
        )

        assert "cannot be more than 365 days in the past" in errors[0].message
        assert "2023-06-16" in errors[0].message

    def test_crypto_date_at_history_limit(self):
        assert ledger.validate_investment_date(
            date(2023, 6, 16), InvestmentCategory.CRYPTOCURRENCY, TODAY, historical_limit_days=365
        ) == []

    def test_old_date_fine_for_other_categories(self):
        assert ledger.validate_investment_date(date(2001, 1, 1), InvestmentCategory.BONDS, TODAY) == []

    def test_purchase_input_defaults_to_today(self):
        data = PurchaseCreate(amount_invested="25.50")
        assert ledger.validate_purchase_input(data, InvestmentCategory.CRYPTOCURRENCY, TODAY) == []


# =============================================================================
# FACTORY TESTS
# =============================================================================


class TestFactories:
    """Tests for create_investment and create_purchase."""

    def test_create_crypto_investment(self):
        investment = ledger.create_investment(
            "  Bitcoin ", "Cryptocurrency", coin_id="bitcoin", coin_symbol="btc", now=FIXED_NOW
        )

        assert investment.name == "Bitcoin"
        assert investment.is_crypto
        assert investment.crypto.coin_symbol == "BTC"
        assert investment.purchases == []
        assert investment.total_invested == Decimal("0")
        assert investment.created_at == FIXED_NOW

    def test_create_investment_missing_coin(self):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_investment("Bitcoin", InvestmentCategory.CRYPTOCURRENCY)

        assert exc_info.value.fields == ["coin_id", "coin_symbol"]

    def test_create_stock_investment_has_no_crypto(self):
        investment = ledger.create_investment("Index", InvestmentCategory.ETF)
        assert investment.crypto is None

    def test_crypto_purchase_tokens(self):
        purchase = ledger.create_purchase(
            50, date(2024, 6, 1), InvestmentCategory.CRYPTOCURRENCY, unit_price=4000, now=FIXED_NOW
        )

        assert purchase.amount_invested == Decimal("50.00")
        assert purchase.tokens_acquired == Decimal("0.0125")
        assert purchase.price_per_token_usd == Decimal("4000")

    def test_crypto_purchase_requires_price(self):
        with pytest.raises(ValidationError) as exc_info:
            ledger.create_purchase(50, TODAY, InvestmentCategory.CRYPTOCURRENCY, unit_price=0)

        assert exc_info.value.fields == ["price_per_token_usd"]

    def test_non_crypto_purchase_is_one_unit(self):
        purchase = ledger.create_purchase("199.999", TODAY, InvestmentCategory.STOCKS)

        assert purchase.amount_invested == Decimal("200.00")
        assert purchase.tokens_acquired == Decimal("1")
        assert purchase.price_per_token_usd == Decimal("0")


# =============================================================================
# LEDGER OPERATION TESTS
# =============================================================================


class TestLedgerOperations:
    """Tests for add/remove purchase and recalculation."""

    def test_repeat_purchase_of_same_coin(self):
        """
        GIVEN a bitcoin holding with $50 bought at $4000
        WHEN $100 more is bought at $10000 and the live price is $5000
        THEN tokens are 0.0225, invested 150, value 112.50, gain -37.50
        """
        investment = make_crypto_investment([make_purchase("50", "0.0125", "4000")])
        second = ledger.create_purchase(
            100, date(2024, 6, 10), InvestmentCategory.CRYPTOCURRENCY, unit_price=10000
        )

        investment = ledger.add_purchase(investment, second)
        investment = ledger.apply_price(investment, 5000, FIXED_NOW)

        assert investment.crypto.total_tokens == Decimal("0.0225")
        assert investment.total_invested == Decimal("150.00")
        assert investment.current_market_value == Decimal("112.50")
        assert investment.unrealized_gains == Decimal("-37.50")
        assert investment.crypto.last_price_update == FIXED_NOW

    def test_add_purchase_does_not_mutate_input(self):
        investment = make_crypto_investment([make_purchase("50", "0.0125", "4000")])

        ledger.add_purchase(investment, make_purchase("10", "0.001", "10000"))

        assert len(investment.purchases) == 1
        assert investment.total_invested == Decimal("50.00")

    def test_total_invested_equals_sum_of_purchases(self):
        """
        GIVEN purchases with sub-cent float-unfriendly amounts
        WHEN they are added one by one and one is removed
        THEN total_invested always equals the cent sum of the remaining purchases
        """
        amounts = ["0.10", "0.20", "19.99", "1000.01", "33.33"]
        investment = ledger.create_investment("Fund", InvestmentCategory.MUTUAL_FUNDS)
        for amount in amounts:
            investment = ledger.add_purchase(investment, make_purchase(amount))
        assert investment.total_invested == Decimal("1053.63")

        removed_id = investment.purchases[2].purchase_id
        investment = ledger.remove_purchase(investment, removed_id)

        assert investment.total_invested == Decimal("1033.64")
        assert investment.total_invested == sum(p.amount_invested for p in investment.purchases)

    def test_recalculate_is_idempotent(self):
        investment = make_crypto_investment(
            [make_purchase("50", "0.0125", "4000"), make_purchase("100", "0.01", "10000")],
            current_price="5000",
        )

        once = ledger.recalculate_totals(investment)
        twice = ledger.recalculate_totals(once)

        assert once == twice

    def test_recalculate_repairs_wrong_totals(self):
        investment = make_crypto_investment([make_purchase("50", "0.0125", "4000")])
        broken = replace(investment, total_invested=Decimal("999"), unrealized_gains=Decimal("5"))

        healed = ledger.recalculate_totals(broken)

        assert healed == investment

    def test_without_live_price_value_is_invested(self):
        investment = make_crypto_investment([make_purchase("50", "0.0125", "4000")])

        assert investment.current_market_value == Decimal("50.00")
        assert investment.unrealized_gains == Decimal("0.00")

    def test_remove_last_purchase_leaves_zero_totals(self):
        purchase = make_purchase("50", "0.0125", "4000")
        investment = make_crypto_investment([purchase], current_price="5000")

        emptied = ledger.remove_purchase(investment, purchase.purchase_id)

        assert emptied.purchases == []
        assert emptied.total_invested == Decimal("0.00")
        assert emptied.current_market_value == Decimal("0.00")
        assert emptied.crypto.total_tokens == Decimal("0")

    def test_remove_unknown_purchase(self):
        investment = make_crypto_investment([make_purchase("50", "0.0125", "4000")])

        with pytest.raises(NotFoundError):
            ledger.remove_purchase(investment, "missing")

    def test_apply_price_ignores_non_crypto(self):
        investment = ledger.create_investment("Bond", InvestmentCategory.BONDS)
        assert ledger.apply_price(investment, 100) is investment

    def test_rename(self):
        investment = ledger.create_investment("Bond", InvestmentCategory.BONDS)

        renamed = ledger.rename(investment, " Treasury ", now=FIXED_NOW)

        assert renamed.name == "Treasury"
        assert renamed.updated_at == FIXED_NOW

    def test_rename_to_blank_rejected(self):
        investment = ledger.create_investment("Bond", InvestmentCategory.BONDS)

        with pytest.raises(ValidationError):
            ledger.rename(investment, "   ")

    def test_is_historical_date(self):
        assert ledger.is_historical_date(date(2024, 6, 14), TODAY) is True
        assert ledger.is_historical_date(TODAY, TODAY) is False


class TestRecordValidation:
    """Tests for validate_investment_record."""

    def test_valid_record(self):
        investment = make_crypto_investment([make_purchase("50", "0.0125", "4000")])
        assert ledger.validate_investment_record(investment) == []

    def test_reports_purchase_problems(self):
        investment = make_crypto_investment(
            [make_purchase("0", "0.0125", "4000"), make_purchase("10", "0", "-1")]
        )

        problems = ledger.validate_investment_record(investment)

        assert "purchase[0]: amountInvested must be positive" in problems
        assert "purchase[1]: tokensAcquired must be positive" in problems
        assert "purchase[1]: pricePerTokenUSD cannot be negative" in problems

    def test_crypto_without_coin_data(self):
        investment = replace(make_crypto_investment([make_purchase("50", "0.0125", "4000")]), crypto=None)
        assert "cryptocurrency investment without coin data" in ledger.validate_investment_record(investment)
