#!/usr/bin/env python3
"""
Seed the local store with legacy flat investment records.
The next start of the app migrates them to the purchase-ledger schema.
"""

import sys
from datetime import date, timedelta
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from investfolio.app_context import get_app_context
from investfolio.repositories.investment_repo import INVESTMENTS_KEY
from investfolio.repositories.sqlalchemy import SqlAlchemyKeyValueStore, get_session


def legacy_records() -> list[dict]:
    """Flat records in the pre-ledger layout (single amount, single value)."""
    today = date.today()
    return [
        {
            "id": "legacy-btc",
            "name": "Bitcoin",
            "category": "Cryptocurrency",
            "initialInvestment": 1000,
            "initialAmount": 0.025,
            "currentValue": 1600,
            "date": (today - timedelta(days=120)).isoformat(),
            "coinId": "bitcoin",
            "coinSymbol": "btc",
            "coinPriceUSD": 64000,
        },
        {
            "id": "legacy-eth",
            "name": "Ethereum",
            "category": "Cryptocurrency",
            "date": (today - timedelta(days=60)).isoformat(),
            "coinId": "ethereum",
            "coinSymbol": "eth",
            "purchaseHistory": [
                {"id": "eth-1", "date": (today - timedelta(days=60)).isoformat(), "amount": 500, "tokens": 0.2, "pricePerToken": 2500},
                {"id": "eth-2", "date": (today - timedelta(days=30)).isoformat(), "amount": 300, "tokens": 0.1, "pricePerToken": 3000},
            ],
        },
        {
            "id": "legacy-index",
            "name": "Index Fund",
            "category": "ETF",
            "initialInvestment": 2500,
            "currentValue": 2750,
            "date": (today - timedelta(days=200)).isoformat(),
        },
    ]


def main() -> None:
    context = get_app_context()
    context.initialize()
    session = get_session()
    try:
        store = SqlAlchemyKeyValueStore(session)
        if store.get(INVESTMENTS_KEY):
            print(f"Store already has '{INVESTMENTS_KEY}'; not overwriting.")
            return
        records = legacy_records()
        store.set(INVESTMENTS_KEY, records)
        print(f"Seeded {len(records)} legacy records into {context.data_dir}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
