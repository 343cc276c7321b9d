"""Clock and calendar-date helpers."""

from datetime import date, datetime
from typing import Optional, Union

import pytz
from dateutil import parser as date_parser

from investfolio.config.settings import get_settings

UTC = pytz.utc


def local_tz() -> pytz.BaseTzInfo:
    """Return the calendar timezone configured for value dates."""
    return pytz.timezone(get_settings().timezone)


def now_utc() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


def today_local(now: Optional[datetime] = None) -> date:
    """
    Return today's calendar date in the configured timezone.

    Value dates are compared date-only against this day.
    """
    current = now or now_utc()
    if current.tzinfo is None:
        current = UTC.localize(current)
    return current.astimezone(local_tz()).date()


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC; naive datetimes are assumed to be UTC already."""
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def parse_datetime(value: Union[str, datetime]) -> datetime:
    """Parse a timestamp string and return it in UTC."""
    if isinstance(value, datetime):
        return to_utc(value)
    return to_utc(date_parser.parse(value))


def parse_value_date(value: Union[str, date, datetime]) -> date:
    """
    Parse a purchase value date.

    Datetimes with a timezone are converted to the configured calendar first.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(local_tz()).date()
    if isinstance(value, date):
        return value
    parsed = date_parser.parse(value)
    if parsed.tzinfo is not None:
        return parsed.astimezone(local_tz()).date()
    return parsed.date()
