"""JSON encoding for values written to the key-value store."""

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(value: Any) -> str:
    """Serialize a value; Decimals become strings so no precision is lost."""
    return json.dumps(value, default=_default, separators=(",", ":"))


def loads(text: str) -> Any:
    return json.loads(text)
