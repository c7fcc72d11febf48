from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.schemas.availability import AvailabilityResponse
from app.core.db import get_session
from app.services.availability_service import summarize, summarize_month

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=AvailabilityResponse)
async def availability_summary(
    therapist_id: str | None = Query(None, alias="therapistId"),
    from_date: str | None = Query(None, alias="from"),
    to_date: str | None = Query(None, alias="to"),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    """Per-day booked vs. available slot counts keyed by DD-MM-YYYY (default: next 14 days)."""
    data = await summarize(session, from_date, to_date, therapist_id=therapist_id)
    return AvailabilityResponse(data=data)


@router.get("/monthly", response_model=AvailabilityResponse)
async def monthly_availability_summary(
    month: str | None = Query(None),
    year: str | None = Query(None),
    therapist_id: str | None = Query(None, alias="therapistId"),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityResponse:
    data = await summarize_month(session, year, month, therapist_id=therapist_id)
    return AvailabilityResponse(data=data)
