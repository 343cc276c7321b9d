"""Business logic services."""

from investfolio.services.price_cache import PriceCache
from investfolio.services.market_data_service import MarketDataService
from investfolio.services.ledger import InvestmentCreate, PurchaseCreate
from investfolio.services.performance_calculator import PerformanceCalculator
from investfolio.services.schema_migrator import SchemaMigrator
from investfolio.services.investment_service import InvestmentService

__all__ = [
    "PriceCache",
    "MarketDataService",
    "InvestmentCreate",
    "PurchaseCreate",
    "PerformanceCalculator",
    "SchemaMigrator",
    "InvestmentService",
]
