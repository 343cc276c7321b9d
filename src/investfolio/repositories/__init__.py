"""Repository layer."""

from investfolio.repositories.protocols import KeyValueStore
from investfolio.repositories.memory_store import InMemoryKeyValueStore
from investfolio.repositories.investment_repo import (
    InvestmentRepository,
    investment_to_record,
    investment_from_record,
    is_numeric,
    INVESTMENTS_KEY,
    BACKUP_KEY_PREFIX,
)

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "InvestmentRepository",
    "investment_to_record",
    "investment_from_record",
    "is_numeric",
    "INVESTMENTS_KEY",
    "BACKUP_KEY_PREFIX",
]
