"""
Availability summary.

Cross-references the slot catalog, therapist holidays and the session ledger to
report, per day, how many normal and limited slots are booked out of the
capacity of the therapists who are working that day. The booking flow calls
``summarize`` directly as its conflict oracle, so it is read-only and safe to
call repeatedly within one transaction.
"""

import calendar
import logging
from collections import defaultdict
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ValidationError
from app.models.availability import DaySummary
from app.services import slot_catalog
from app.services.date_keys import day_keys, parse_iso_date
from app.services.holiday_service import blocked_slot_ids, get_holidays_for_window
from app.services.session_ledger import fetch_active_sessions
from app.services.therapist_service import list_active_therapists

logger = logging.getLogger(__name__)

_CATALOG_ORDER = {s.slot_id: i for i, s in enumerate(slot_catalog.all_slots())}


def _catalog_sorted(slot_ids) -> list[str]:
    return sorted(slot_ids, key=lambda s: (_CATALOG_ORDER.get(s, len(_CATALOG_ORDER)), s))


def resolve_window(
    from_date: str | date | None, to_date: str | date | None
) -> tuple[date, date]:
    """Default window is today .. today + (availability_window_days - 1)."""
    span = timedelta(days=settings.availability_window_days - 1)
    start = parse_iso_date(from_date, "from", exact=True) if from_date else date.today()
    end = parse_iso_date(to_date, "to", exact=True) if to_date else start + span
    if start > end:
        raise ValidationError("Invalid from/to date range: from is after to")
    return start, end


def _coerce_therapist_id(value: int | str) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


async def summarize(
    session: AsyncSession,
    from_date: str | date | None = None,
    to_date: str | date | None = None,
    therapist_id: int | str | None = None,
) -> dict[str, DaySummary]:
    """Per-day occupancy keyed by DD-MM-YYYY.

    An unknown or inactive ``therapist_id`` yields an empty dict, not an error.
    """
    start, end = resolve_window(from_date, to_date)

    therapists = await list_active_therapists(session)
    if therapist_id is not None and therapist_id != "":
        wanted = _coerce_therapist_id(therapist_id)
        therapists = [t for t in therapists if t.id == wanted]
        if not therapists:
            return {}

    keys = day_keys(start, end)
    iso_dates = [k.iso for k in keys]
    ids = [t.id for t in therapists]
    display_by_id = {t.id: t.display_id for t in therapists}

    # date -> therapist display id -> slot ids
    booked: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
    for s in await fetch_active_sessions(session, ids, iso_dates):
        booked[s.date][display_by_id[s.therapist_id]].add(s.slot_id)

    # date -> therapist display id -> blocked slot ids
    on_holiday: dict[str, dict[str, list[str]]] = defaultdict(dict)
    for h in await get_holidays_for_window(session, ids, iso_dates):
        on_holiday[h.date][display_by_id[h.therapist_id]] = blocked_slot_ids(h)

    availability: dict[str, DaySummary] = {}
    for key in keys:
        day_holidays = on_holiday.get(key.iso, {})
        day_booked = booked.get(key.iso, {})
        eligible = [t.display_id for t in therapists if t.display_id not in day_holidays]

        booked_count = limited_count = 0
        for display_id in eligible:
            for slot_id in day_booked.get(display_id, ()):
                if slot_catalog.is_limited(slot_id):
                    limited_count += 1
                else:
                    booked_count += 1

        availability[key.display] = DaySummary(
            booked_slots=booked_count,
            total_available_slots=len(eligible) * slot_catalog.NORMAL_SLOTS_PER_DAY,
            limited_booked_slots=limited_count,
            total_limited_available_slots=len(eligible) * slot_catalog.LIMITED_SLOTS_PER_DAY,
            booked_slot_map={tid: _catalog_sorted(slots) for tid, slots in day_booked.items()},
            holiday_slot_map=dict(day_holidays),
        )

    logger.debug(
        "Availability %s..%s for %d therapist(s) computed", start, end, len(therapists)
    )
    return availability


async def summarize_month(
    session: AsyncSession,
    year: int | str | None,
    month: int | str | None,
    therapist_id: int | str | None = None,
) -> dict[str, DaySummary]:
    try:
        year = int(year)
        month = int(month)
    except (TypeError, ValueError):
        raise ValidationError("month (1-12) and year are required as numbers")
    if not 1 <= month <= 12 or year < 1:
        raise ValidationError("month (1-12) and year are required as numbers")
    last_day = calendar.monthrange(year, month)[1]
    return await summarize(
        session,
        date(year, month, 1),
        date(year, month, last_day),
        therapist_id=therapist_id,
    )
