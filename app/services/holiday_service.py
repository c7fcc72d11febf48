import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import HolidayConflictError, NotFoundError, ValidationError
from app.models.therapist import TherapistHoliday
from app.services import slot_catalog
from app.services.date_keys import day_keys, parse_iso_date
from app.services.session_ledger import fetch_active_sessions
from app.services.therapist_service import get_therapist

logger = logging.getLogger(__name__)


async def list_holidays(session: AsyncSession, therapist_id: int) -> list[TherapistHoliday]:
    await get_therapist(session, therapist_id)
    result = await session.execute(
        select(TherapistHoliday)
        .where(TherapistHoliday.therapist_id == therapist_id)
        .order_by(TherapistHoliday.date)
    )
    return list(result.scalars().all())


async def get_holidays_for_window(
    session: AsyncSession, therapist_ids: list[int], dates: list[str]
) -> list[TherapistHoliday]:
    if not therapist_ids or not dates:
        return []
    result = await session.execute(
        select(TherapistHoliday).where(
            TherapistHoliday.therapist_id.in_(therapist_ids),
            TherapistHoliday.date.in_(dates),
        )
    )
    return list(result.scalars().all())


async def _upsert_holiday(
    session: AsyncSession, therapist_id: int, day: str, is_full_day: bool, slots: list[dict]
) -> None:
    result = await session.execute(
        select(TherapistHoliday).where(
            TherapistHoliday.therapist_id == therapist_id,
            TherapistHoliday.date == day,
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        holiday = TherapistHoliday(therapist_id=therapist_id, date=day)
    holiday.is_full_day = is_full_day
    holiday.slots = slots
    session.add(holiday)


async def set_full_day_holiday(
    session: AsyncSession,
    therapist_id: int,
    from_date: str | date,
    to_date: str | date,
) -> list[TherapistHoliday]:
    """Block every day in [from_date, to_date] unless any of them already holds an active session."""
    therapist = await get_therapist(session, therapist_id)
    start = parse_iso_date(from_date, "fromDate")
    end = parse_iso_date(to_date, "toDate")
    if start > end:
        raise ValidationError("fromDate cannot be after toDate")

    days = [k.iso for k in day_keys(start, end)]
    booked = await fetch_active_sessions(session, [therapist.id], days)
    booked_dates = sorted({s.date for s in booked})
    if booked_dates:
        logger.info("Holiday rejected for %s: sessions on %s", therapist.display_id, booked_dates)
        raise HolidayConflictError(
            f"Cannot set holiday: Therapist already has session(s) on {', '.join(booked_dates)}.",
            conflicts=[{"date": d, "therapistId": therapist.display_id} for d in booked_dates],
            blockedDates=booked_dates,
        )

    async with atomic(session, "set holidays"):
        for day in days:
            await _upsert_holiday(session, therapist.id, day, True, [])
    logger.info("Full day holiday set for %s: %s .. %s", therapist.display_id, days[0], days[-1])
    return await list_holidays(session, therapist.id)


async def set_partial_holiday(
    session: AsyncSession,
    therapist_id: int,
    holiday_date: str | date,
    slot_ids: list[str],
) -> list[TherapistHoliday]:
    """Block the given slots on one day; unknown slot ids are ignored."""
    therapist = await get_therapist(session, therapist_id)
    day = parse_iso_date(holiday_date, "date").isoformat()

    resolved = [slot_catalog.get_slot(slot_id) for slot_id in dict.fromkeys(slot_ids or [])]
    slots_to_save = [{"slotId": s.slot_id, "label": s.label} for s in resolved if s]
    if not slots_to_save:
        raise ValidationError("No valid slots selected")

    wanted = [s["slotId"] for s in slots_to_save]
    booked = await fetch_active_sessions(session, [therapist.id], [day], slot_ids=wanted)
    blocked = sorted({s.slot_id for s in booked}, key=wanted.index)
    if blocked:
        labels = [slot_catalog.label(slot_id) for slot_id in blocked]
        logger.info("Partial holiday rejected for %s on %s: %s", therapist.display_id, day, blocked)
        raise HolidayConflictError(
            f"Cannot set holiday: Therapist already has session(s) for slot(s): {', '.join(labels)} on {day}.",
            conflicts=[
                {"date": day, "slotId": slot_id, "label": lbl, "therapistId": therapist.display_id}
                for slot_id, lbl in zip(blocked, labels)
            ],
            blockedSlots=labels,
        )

    async with atomic(session, "set holidays"):
        await _upsert_holiday(session, therapist.id, day, False, slots_to_save)
    logger.info("Partial holiday set for %s on %s: %s", therapist.display_id, day, wanted)
    return await list_holidays(session, therapist.id)


async def remove_holiday(session: AsyncSession, therapist_id: int, holiday_date: str | date) -> None:
    therapist = await get_therapist(session, therapist_id)
    day = parse_iso_date(holiday_date, "date").isoformat()
    result = await session.execute(
        select(TherapistHoliday).where(
            TherapistHoliday.therapist_id == therapist.id,
            TherapistHoliday.date == day,
        )
    )
    holiday = result.scalar_one_or_none()
    if not holiday:
        raise NotFoundError("Holiday not found", date=day)
    async with atomic(session, "remove holiday"):
        await session.delete(holiday)


def blocked_slot_ids(holiday: TherapistHoliday) -> list[str]:
    """Slot ids a holiday record takes out of service."""
    if holiday.is_full_day:
        return [s.slot_id for s in slot_catalog.all_slots()]
    return [s.get("slotId") for s in holiday.slots or [] if s.get("slotId")]
