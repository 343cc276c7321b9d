"""
Integration tests for the SQLite-backed key-value store.

Tests cover:
- SqlAlchemyKeyValueStore get/set/remove/keys
- InvestmentRepository and migration over SQLite
- PriceCache durable tier surviving a new cache instance
- AppContext persistence across restarts
"""

from decimal import Decimal

import pytest

from investfolio.app_context import AppContext
from investfolio.repositories import (
    BACKUP_KEY_PREFIX,
    INVESTMENTS_KEY,
    InvestmentRepository,
    investment_to_record,
)
from investfolio.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from investfolio.repositories.sqlalchemy.database import reset_database
from investfolio.repositories.sqlalchemy.orm_models import KeyValueORM
from investfolio.services import PriceCache, SchemaMigrator
from investfolio.services.ledger import InvestmentCreate
from tests.conftest import FIXED_NOW, FakeClock, legacy_record, make_crypto_investment, make_purchase


@pytest.fixture
def kv(test_session) -> SqlAlchemyKeyValueStore:
    return SqlAlchemyKeyValueStore(test_session)


# =============================================================================
# KEY-VALUE STORE TESTS
# =============================================================================


class TestSqlAlchemyKeyValueStore:
    """Tests for the SQLAlchemy KeyValueStore implementation."""

    def test_set_and_get(self, kv):
        assert kv.set("k", {"price": Decimal("65000.12"), "list": [1, 2]}) is True

        assert kv.get("k") == {"price": "65000.12", "list": [1, 2]}

    def test_missing_key_returns_default(self, kv):
        assert kv.get("missing") is None
        assert kv.get("missing", []) == []

    def test_overwrite(self, kv):
        kv.set("k", 1)
        kv.set("k", 2)

        assert kv.get("k") == 2
        assert kv.keys() == ["k"]

    def test_remove(self, kv):
        kv.set("k", 1)

        assert kv.remove("k") is True
        assert kv.get("k") is None
        assert kv.remove("k") is True

    def test_keys_by_prefix(self, kv):
        for key in ["price_cache:b", "price_cache:a", "investments", "priceXcache:c"]:
            kv.set(key, 1)

        assert kv.keys("price_cache:") == ["price_cache:a", "price_cache:b"]
        assert len(kv.keys()) == 4

    def test_unreadable_value_returns_default(self, kv, test_session):
        test_session.add(KeyValueORM(key="bad", value="{not json"))
        test_session.commit()

        assert kv.get("bad", "fallback") == "fallback"

    def test_unserializable_value_rejected(self, kv):
        assert kv.set("k", {"obj": object()}) is False
        assert kv.get("k") is None


# =============================================================================
# REPOSITORY OVER SQLITE
# =============================================================================


class TestRepositoryOverSqlite:
    """Tests for InvestmentRepository and SchemaMigrator on SQLite."""

    def test_round_trip(self, kv):
        repo = InvestmentRepository(kv)
        investment = make_crypto_investment(
            [make_purchase("50", "0.0125", "4000")], current_price="5000"
        )

        repo.save_all([investment])

        assert repo.load_all() == [investment]
        assert repo.get(investment.investment_id) == investment

    def test_save_keeps_unreadable_record_replace_drops_it(self, kv):
        """
        GIVEN a stored record whose category cannot be decoded
        WHEN the readable collection is saved and later replaced
        THEN save_all keeps the record and replace_all removes it
        """
        investment = make_crypto_investment([make_purchase("50", "0.0125", "4000")])
        bad = {**investment_to_record(investment), "id": "bad", "category": "Commodities"}
        kv.set(INVESTMENTS_KEY, [bad])
        repo = InvestmentRepository(kv)

        repo.save_all([investment])
        assert [r["id"] for r in kv.get(INVESTMENTS_KEY)] == ["bad", investment.investment_id]

        repo.replace_all([investment])
        assert [r["id"] for r in kv.get(INVESTMENTS_KEY)] == [investment.investment_id]

    def test_migration_writes_backup(self, kv):
        kv.set(INVESTMENTS_KEY, [legacy_record()])
        repo = InvestmentRepository(kv)

        outcome = SchemaMigrator(repo).run(now=FIXED_NOW)

        assert outcome.migrated is True
        assert kv.keys(BACKUP_KEY_PREFIX) == [outcome.backup_key]
        assert repo.load_all()[0].total_invested == Decimal("1000.00")


class TestPriceCacheOverSqlite:
    """Tests for the durable cache tier on SQLite."""

    def test_entry_survives_new_cache(self, kv):
        clock = FakeClock()
        key = PriceCache.generate_key("price", {"coin_id": "bitcoin"})
        PriceCache(kv, clock=clock).set(key, {"price": Decimal("5000")}, ttl=3600)

        clock.advance(10)
        restarted = PriceCache(kv, clock=clock)

        assert restarted.get(key) == {"price": "5000"}
        assert restarted.stats().storage_entries == 1


# =============================================================================
# APP CONTEXT
# =============================================================================


class TestAppContext:
    """Tests for the process-wide application context."""

    @pytest.mark.asyncio
    async def test_data_persists_across_contexts(self, tmp_path, monkeypatch):
        """
        GIVEN an investment added through one context
        WHEN a new context opens the same data directory
        THEN the investment is loaded
        """
        monkeypatch.setenv("USE_STUB_PROVIDER", "true")
        first = AppContext(tmp_path)
        first.initialize()
        result = await first.investments.add_investment(
            InvestmentCreate(name="Index", category="ETF", amount_invested="1000")
        )
        assert result.success is True
        await first.aclose()

        second = AppContext(tmp_path)
        second.initialize()
        try:
            investments = second.investments.list_investments()
            assert [i.name for i in investments] == ["Index"]
            assert (tmp_path / "investfolio.db").exists()
        finally:
            await second.aclose()
            reset_database()
