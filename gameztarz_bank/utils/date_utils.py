"""Date manipulation utilities"""

from datetime import datetime, timezone
from dateutil.relativedelta import relativedelta


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (a trailing 'Z' is accepted)"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).isoformat()


def add_months(value: datetime, months: int = 1) -> datetime:
    """Calendar month step; day clamps to the end of shorter months"""
    return value + relativedelta(months=months)


def add_years(value: datetime, years: int = 1) -> datetime:
    return value + relativedelta(years=years)


def first_of_next_month(value: datetime) -> datetime:
    return (value + relativedelta(months=1)).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def month_key(value: datetime) -> str:
    """Budget month bucket, e.g. '2024-07'"""
    return value.strftime("%Y-%m")
