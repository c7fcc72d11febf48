"""Read side of the session ledger: active booked sessions keyed by (date, slot, therapist)."""

from collections.abc import Iterable

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import INACTIVE_SESSION_STATUSES, BookingSession


def active_session_clause():
    return or_(
        BookingSession.status.is_(None),
        BookingSession.status.not_in(INACTIVE_SESSION_STATUSES),
    )


async def fetch_active_sessions(
    session: AsyncSession,
    therapist_ids: Iterable[int],
    dates: Iterable[str],
    slot_ids: Iterable[str] | None = None,
) -> list[BookingSession]:
    therapist_ids = list(therapist_ids)
    dates = list(dates)
    if not therapist_ids or not dates:
        return []
    q = select(BookingSession).where(
        BookingSession.therapist_id.in_(therapist_ids),
        BookingSession.date.in_(dates),
        active_session_clause(),
    )
    if slot_ids is not None:
        q = q.where(BookingSession.slot_id.in_(list(slot_ids)))
    result = await session.execute(q.order_by(BookingSession.date, BookingSession.slot_id))
    return list(result.scalars().all())
