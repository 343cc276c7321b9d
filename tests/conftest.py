"""
Pytest configuration and fixtures for the investment portfolio tests.

This module provides:
- Settings isolated to a temporary data directory
- A controllable clock for cache TTL and rate-limit tests
- A deterministic fake price provider that records its calls
- In-memory and SQLite key-value store fixtures
- Factory helpers for purchases, investments and legacy records
- Service and API client fixtures
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session

from investfolio.api.deps import get_investment_service
from investfolio.config.settings import Settings, set_settings, reset_settings
from investfolio.core.timezone import UTC
from investfolio.domain.models import (
    CryptoHolding,
    Investment,
    InvestmentCategory,
    Purchase,
)
from investfolio.main import app
from investfolio.repositories import InMemoryKeyValueStore, InvestmentRepository
from investfolio.repositories.sqlalchemy.database import Base
# Import ORM models to register them with Base before creating tables
from investfolio.repositories.sqlalchemy import orm_models  # noqa: F401
from investfolio.services import InvestmentService, MarketDataService, PriceCache
from investfolio.services.ledger import recalculate_totals


# =============================================================================
# SETTINGS AND TIME HELPERS
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path):
    """Point settings at a temporary data directory for every test."""
    set_settings(Settings(data_dir=tmp_path, timezone="UTC", use_stub_provider=True))
    yield
    reset_settings()


def utc_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in UTC."""
    return UTC.localize(datetime(year, month, day, hour, minute, second))


FIXED_NOW = utc_datetime(2024, 6, 15, 14, 30, 0)
TODAY = FIXED_NOW.date()


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests (2024-06-15 14:30 UTC)."""
    return FIXED_NOW


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class RecordingSleep:
    """Async sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# PRICE PROVIDER FIXTURES
# =============================================================================


class FakePriceProvider:
    """
    Deterministic price provider for testing.

    Current prices come from `prices`; historical prices from
    `historical[(coin_id, date)]`. Set `fail_with` to make every call raise.
    """

    COINS = [
        {"id": "bitcoin", "name": "Bitcoin", "symbol": "btc", "thumb": "btc.png", "market_cap_rank": 1},
        {"id": "ethereum", "name": "Ethereum", "symbol": "eth", "thumb": "eth.png", "market_cap_rank": 2},
    ]

    def __init__(
        self,
        prices: Optional[dict[str, Decimal]] = None,
        historical: Optional[dict[tuple[str, date], Decimal]] = None,
    ):
        self.prices = dict(prices if prices is not None else {
            "bitcoin": Decimal("5000"),
            "ethereum": Decimal("2000"),
        })
        self.historical = dict(historical or {})
        self.fail_with: Optional[Exception] = None
        self.calls: list[tuple[str, Any]] = []
        self.closed = False

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def _record(self, method: str, args: Any) -> None:
        self.calls.append((method, args))
        if self.fail_with is not None:
            raise self.fail_with

    async def search(self, query: str) -> list[dict[str, Any]]:
        self._record("search", query)
        needle = query.lower()
        return [dict(c) for c in self.COINS if needle in c["id"] or needle == c["symbol"]]

    async def simple_price(self, coin_ids: list[str], currency: str) -> dict[str, dict[str, Any]]:
        self._record("simple_price", list(coin_ids))
        return {
            coin_id: {"price": self.prices[coin_id], "change_24h": Decimal("1.5")}
            for coin_id in coin_ids
            if coin_id in self.prices
        }

    async def coin_history(self, coin_id: str, on_date: date, currency: str) -> dict[str, Any]:
        self._record("coin_history", (coin_id, on_date))
        return {
            "price": self.historical.get((coin_id, on_date)),
            "change_24h": None,
            "last_updated": None,
        }

    async def market_chart(self, coin_id: str, days: int, currency: str) -> dict[str, Any]:
        self._record("market_chart", (coin_id, days))
        return {
            "prices": [
                [1718409600000, Decimal("4900.5")],
                [1718496000000, Decimal("5000")],
            ]
        }

    async def aclose(self) -> None:
        self.closed = True


def network_error() -> httpx.ConnectError:
    return httpx.ConnectError("Network unavailable")


@pytest.fixture
def provider() -> FakePriceProvider:
    return FakePriceProvider()


# =============================================================================
# STORE AND REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def investment_repo(store) -> InvestmentRepository:
    return InvestmentRepository(store)


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def price_cache(store, clock) -> PriceCache:
    return PriceCache(store, clock=clock, rate_limit_window=60)


@pytest.fixture
def market_data(provider, price_cache, no_sleep) -> MarketDataService:
    return MarketDataService(provider=provider, cache=price_cache, sleep=no_sleep)


@pytest.fixture
def service(investment_repo, market_data, fixed_now) -> InvestmentService:
    """InvestmentService over an empty in-memory store with a fixed clock."""
    return InvestmentService(
        repository=investment_repo,
        market_data=market_data,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def client(service) -> TestClient:
    """API client wired to the test InvestmentService."""
    async def override() -> InvestmentService:
        return service

    app.dependency_overrides[get_investment_service] = override
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# FACTORY HELPERS
# =============================================================================


def make_purchase(
    amount: str,
    tokens: str = "1",
    price: str = "0",
    investment_date: date = date(2024, 6, 1),
    purchase_id: Optional[str] = None,
) -> Purchase:
    return Purchase(
        purchase_id=purchase_id or str(uuid.uuid4()),
        investment_date=investment_date,
        created_at=FIXED_NOW,
        amount_invested=Decimal(amount),
        tokens_acquired=Decimal(tokens),
        price_per_token_usd=Decimal(price),
    )


def make_crypto_investment(
    purchases: list[Purchase],
    coin_id: str = "bitcoin",
    symbol: str = "BTC",
    current_price: Optional[str] = None,
    investment_id: Optional[str] = None,
) -> Investment:
    """Crypto investment with totals recalculated from purchases."""
    investment = Investment(
        investment_id=investment_id or str(uuid.uuid4()),
        name=symbol,
        category=InvestmentCategory.CRYPTOCURRENCY,
        created_at=FIXED_NOW,
        purchases=purchases,
        crypto=CryptoHolding(
            coin_id=coin_id,
            coin_symbol=symbol,
            current_price_usd=Decimal(current_price) if current_price else None,
        ),
    )
    return recalculate_totals(investment)


def make_investment(
    total_invested: str,
    current_market_value: str,
    name: str = "Holding",
) -> Investment:
    """Investment with stored totals (as loaded from the store)."""
    invested = Decimal(total_invested)
    market = Decimal(current_market_value)
    return Investment(
        investment_id=str(uuid.uuid4()),
        name=name,
        category=InvestmentCategory.STOCKS,
        created_at=FIXED_NOW,
        purchases=[make_purchase(total_invested)],
        total_invested=invested,
        current_market_value=market,
        unrealized_gains=market - invested,
    )


def legacy_record(**overrides: Any) -> dict:
    """A flat pre-ledger investment record."""
    record = {
        "id": "legacy-1",
        "name": "Index Fund",
        "category": "ETF",
        "initialInvestment": 1000,
        "initialAmount": 10,
        "currentValue": 1100,
        "date": "2024-01-10",
    }
    record.update(overrides)
    return record
