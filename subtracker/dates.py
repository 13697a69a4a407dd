"""
Month-granularity date model.

Subscriptions start and end on calendar months.  The only date shape
accepted from callers is ``MM-YYYY`` (zero-padded month, four-digit
year); internally every such date is the first instant of that month
in UTC.
"""
import re
from datetime import datetime, timezone

from subtracker.exceptions import FormatError

_MONTH_YEAR_RE = re.compile(r"^(0[1-9]|1[0-2])-([0-9]{4})$")


def parse_month_year(token: str, field: str | None = None) -> datetime:
    """
    Parse ``MM-YYYY`` into a UTC datetime on day 1 at midnight.

    Raises ``FormatError`` for any other shape, including a missing
    zero pad (``1-2025``), a two-digit year or a ``YYYY-MM`` ordering.
    """
    match = _MONTH_YEAR_RE.fullmatch(token) if isinstance(token, str) else None
    if match is None:
        raise FormatError(str(token), field=field)
    month, year = int(match.group(1)), int(match.group(2))
    if year < 1:
        raise FormatError(token, field=field)
    return datetime(year, month, 1, tzinfo=timezone.utc)


def format_month_year(value: datetime) -> str:
    return f"{value.month:02d}-{value.year:04d}"


def month_start(value: datetime) -> datetime:
    """
    Normalise *value* to the first instant of its month in UTC.

    Naive datetimes are taken to already be UTC; SQLite hands them back
    that way.
    """
    return ensure_utc(value).replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def is_month_start(value: datetime) -> bool:
    return ensure_utc(value) == month_start(value)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
