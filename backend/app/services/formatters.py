"""
Display formatters for the attendance report.

Every value printed on the report goes through one of these helpers so
the document looks the same no matter where it is generated: dates and
times are always shown in the clinic's timezone (America/Santiago by
default) and numbers use the es-CL convention ("." for thousands).

All functions accept missing input and return a placeholder instead of
raising.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from app.config import settings

PLACEHOLDER = "-"
NATIONAL_ID_PLACEHOLDER = "N/A"

Timestamp = Union[datetime, date, str, None]


def _report_zone() -> ZoneInfo:
    return ZoneInfo(settings.REPORT_TIMEZONE)


def _thousands(digits: str) -> str:
    """Insert "." every three digits from the right: 12345678 -> 12.345.678."""
    return re.sub(r"\B(?=(\d{3})+(?!\d))", ".", digits)


def _to_local(value: Timestamp) -> Union[datetime, date, None]:
    """Normalize a timestamp into the report timezone.

    - ISO strings are parsed ("Z" suffix accepted)
    - naive datetimes are taken as UTC (that's what the backend stores)
    - plain dates carry no time, so they are returned untouched
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(_report_zone())
    return value


def format_national_id(raw) -> str:
    """Format a Chilean RUT as XX.XXX.XXX-D.

    Everything except digits and the K check character is stripped,
    the last character becomes the check digit.
    """
    if raw is None or str(raw).strip() == "":
        return NATIONAL_ID_PLACEHOLDER
    cleaned = re.sub(r"[^0-9kK]", "", str(raw))
    if not cleaned:
        return NATIONAL_ID_PLACEHOLDER
    check_digit = cleaned[-1]
    body = cleaned[:-1]
    if not body:
        return check_digit
    return f"{_thousands(body)}-{check_digit}"


def format_date(value: Timestamp) -> str:
    """dd-mm-yyyy in the report timezone, "-" when absent."""
    local = _to_local(value)
    if local is None:
        return PLACEHOLDER
    return local.strftime("%d-%m-%Y")


def format_time(value: Timestamp) -> str:
    """HH:MM (24h) in the report timezone, "-" when absent or date-only."""
    local = _to_local(value)
    if not isinstance(local, datetime):
        return PLACEHOLDER
    return local.strftime("%H:%M")


def format_money(amount: Optional[float]) -> str:
    """Chilean pesos: $1.000.000 (no decimals)."""
    value = round(amount or 0)
    sign = "-" if value < 0 else ""
    return f"{sign}${_thousands(str(abs(value)))}"


def format_hours(hours: Optional[float], decimals: int = 1) -> str:
    return f"{(hours or 0):.{decimals}f} hrs"


def format_percent(rate: Optional[float]) -> str:
    return f"{(rate or 0):.1f}%"


def format_range_label(start: Timestamp, end: Timestamp) -> str:
    return f"{format_date(start)} - {format_date(end)}"


def now_local(now: Optional[datetime] = None) -> datetime:
    """Current time in the report timezone (``now`` overrides the clock)."""
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(_report_zone())
