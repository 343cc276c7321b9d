"""Application context for in-process service management.

Provides a centralized way to build and access the investment services
without HTTP. The FastAPI app and scripts share one context per process.
"""

from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from investfolio.config.settings import Settings, set_settings, get_settings
from investfolio.repositories.sqlalchemy.database import (
    init_db,
    reset_database,
    get_session,
)
from investfolio.repositories.sqlalchemy import SqlAlchemyKeyValueStore
from investfolio.repositories.investment_repo import InvestmentRepository
from investfolio.providers import CoinGeckoProvider, PriceProvider, StubPriceProvider
from investfolio.services import InvestmentService, MarketDataService, PriceCache


class AppContext:
    """
    Application context providing in-process access to the services.

    Services are stateful (price cache, rate-limit trackers), so one instance
    of each lives for the life of the context.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize application context.

        Args:
            data_dir: Optional data directory. If not provided, uses default.
        """
        self._data_dir = data_dir
        self._session: Optional[Session] = None
        self._initialized = False

        # Service instances (lazy initialized)
        self._market_data_service: Optional[MarketDataService] = None
        self._investment_service: Optional[InvestmentService] = None

    def initialize(self, data_dir: Optional[Path] = None) -> None:
        """
        Initialize or reinitialize the application with a data directory.

        Args:
            data_dir: Data directory path. Uses configured settings if not provided.
        """
        if data_dir:
            self._data_dir = data_dir

        if self._data_dir:
            set_settings(Settings(data_dir=self._data_dir))

        # Reset and reinitialize database
        reset_database()
        init_db()

        # Reset service instances to force recreation
        self.close()
        self._market_data_service = None
        self._investment_service = None

        self._initialized = True

    @property
    def is_initialized(self) -> bool:
        """Check if context is initialized."""
        return self._initialized

    @property
    def data_dir(self) -> Path:
        """Get the current data directory."""
        return get_settings().get_data_dir()

    def _get_session(self) -> Session:
        """Get or create database session."""
        if self._session is None:
            self._session = get_session()
        return self._session

    def _get_store(self) -> SqlAlchemyKeyValueStore:
        return SqlAlchemyKeyValueStore(self._get_session())

    def _build_provider(self) -> PriceProvider:
        if get_settings().use_stub_provider:
            return StubPriceProvider()
        return CoinGeckoProvider()

    # Service accessors
    @property
    def market_data(self) -> MarketDataService:
        """Get the MarketDataService instance."""
        if self._market_data_service is None:
            self._market_data_service = MarketDataService(
                provider=self._build_provider(),
                cache=PriceCache(self._get_store()),
            )
        return self._market_data_service

    @property
    def investments(self) -> InvestmentService:
        """
        Get the InvestmentService instance.

        First access runs the schema migration and total repair.
        """
        if self._investment_service is None:
            self._investment_service = InvestmentService(
                repository=InvestmentRepository(self._get_store()),
                market_data=self.market_data,
            )
        return self._investment_service

    async def aclose(self) -> None:
        """Stop background work and release network and database resources."""
        if self._investment_service is not None:
            await self._investment_service.aclose()
        elif self._market_data_service is not None:
            await self._market_data_service.cache.dispose()
            await self._market_data_service.aclose()
        self._investment_service = None
        self._market_data_service = None
        self.close()

    def close(self) -> None:
        """Close the database session."""
        if self._session:
            self._session.close()
            self._session = None


# Global application context (one per process)
_app_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """Get or create the global application context."""
    global _app_context
    if _app_context is None:
        _app_context = AppContext()
    return _app_context


def set_app_context(context: AppContext) -> None:
    """Set the global application context."""
    global _app_context
    _app_context = context
