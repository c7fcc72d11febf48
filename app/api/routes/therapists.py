import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas.therapist import (
    HolidayListResponse,
    HolidayPublic,
    HolidayRequest,
    HolidaySlot,
    TherapistCreate,
    TherapistCreated,
)
from app.core.db import get_session
from app.core.errors import ValidationError
from app.models.therapist import TherapistHoliday
from app.services.holiday_service import (
    list_holidays,
    remove_holiday,
    set_full_day_holiday,
    set_partial_holiday,
)
from app.services.therapist_service import create_therapist

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/therapists", tags=["therapists"])


def _holiday_public(h: TherapistHoliday) -> HolidayPublic:
    return HolidayPublic(
        date=h.date,
        is_full_day=h.is_full_day,
        slots=[HolidaySlot(slot_id=s["slotId"], label=s["label"]) for s in h.slots or []],
        reason=h.reason,
    )


@router.post("", response_model=TherapistCreated, status_code=status.HTTP_201_CREATED)
async def add_therapist(
    body: TherapistCreate,
    session: AsyncSession = Depends(get_session),
) -> TherapistCreated:
    therapist, user = await create_therapist(session, body.name, body.email, body.mobile)
    return TherapistCreated(
        id=therapist.id,
        therapist_id=therapist.display_id,
        user_id=user.id,
        name=user.name,
    )


@router.get("/{therapist_id}/holidays", response_model=HolidayListResponse)
async def get_holidays(
    therapist_id: int,
    session: AsyncSession = Depends(get_session),
) -> HolidayListResponse:
    holidays = await list_holidays(session, therapist_id)
    return HolidayListResponse(holidays=[_holiday_public(h) for h in holidays])


@router.post("/{therapist_id}/holidays", response_model=HolidayListResponse)
async def set_holidays(
    therapist_id: int,
    body: HolidayRequest,
    session: AsyncSession = Depends(get_session),
) -> HolidayListResponse:
    """Full day: {fromDate, toDate}. Partial day: {date, slots: [slotId, ...]}."""
    if body.from_date and body.to_date:
        holidays = await set_full_day_holiday(session, therapist_id, body.from_date, body.to_date)
        message = "Holiday(s) set for full day date range"
    elif body.date and body.slots:
        holidays = await set_partial_holiday(session, therapist_id, body.date, body.slots)
        message = "Partial holiday set for date"
    else:
        raise ValidationError(
            "Invalid request. Please provide fromDate/toDate (full), or date and slots (partial)."
        )
    return HolidayListResponse(message=message, holidays=[_holiday_public(h) for h in holidays])


@router.delete("/{therapist_id}/holidays/{holiday_date}", response_model=HolidayListResponse)
async def delete_holiday(
    therapist_id: int,
    holiday_date: str,
    session: AsyncSession = Depends(get_session),
) -> HolidayListResponse:
    await remove_holiday(session, therapist_id, holiday_date)
    logger.info("Holiday %s removed for therapist %s", holiday_date, therapist_id)
    holidays = await list_holidays(session, therapist_id)
    return HolidayListResponse(message="Holiday removed", holidays=[_holiday_public(h) for h in holidays])
