import re
from datetime import date, timedelta
from typing import NamedTuple

from app.core.errors import ValidationError

_ISO_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")
_ISO_EXACT = re.compile(r"^(\d{4}-\d{2}-\d{2})\Z")


class DayKey(NamedTuple):
    display: str  # DD-MM-YYYY
    iso: str  # YYYY-MM-DD


def parse_iso_date(value: str | date | None, field: str = "date", exact: bool = False) -> date:
    """Accept a date or a string starting with YYYY-MM-DD (timestamps are truncated).

    With ``exact`` the string must be exactly YYYY-MM-DD.
    """
    if isinstance(value, date):
        return value
    pattern = _ISO_EXACT if exact else _ISO_PREFIX
    match = pattern.match(value or "")
    if not match:
        raise ValidationError(f"Invalid {field} format, expected YYYY-MM-DD", field=field)
    try:
        return date.fromisoformat(match.group(1))
    except ValueError:
        raise ValidationError(f"Invalid {field}: {value}", field=field)


def day_keys(start: date, end: date) -> list[DayKey]:
    """Inclusive sequence of days from start to end in both encodings."""
    keys: list[DayKey] = []
    current = start
    while current <= end:
        keys.append(DayKey(current.strftime("%d-%m-%Y"), current.isoformat()))
        current += timedelta(days=1)
    return keys

