import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import atomic
from app.core.errors import NotFoundError
from app.models.therapist import Therapist
from app.models.user import USER_STATUS_ACTIVE, User
from app.services.counter_service import THERAPIST_COUNTER, format_therapist_id, next_sequence

logger = logging.getLogger(__name__)


async def get_therapist(session: AsyncSession, therapist_id: int) -> Therapist:
    therapist = await session.get(Therapist, therapist_id)
    if not therapist:
        raise NotFoundError("Therapist not found", therapistId=therapist_id)
    return therapist


async def get_therapists_by_ids(session: AsyncSession, ids: set[int]) -> dict[int, Therapist]:
    if not ids:
        return {}
    result = await session.execute(select(Therapist).where(Therapist.id.in_(ids)))
    return {t.id: t for t in result.scalars().all()}


async def list_active_therapists(session: AsyncSession) -> list[Therapist]:
    """Therapists whose linked account is active."""
    result = await session.execute(
        select(Therapist)
        .join(User, User.id == Therapist.user_id)
        .where(User.role == "therapist", User.status == USER_STATUS_ACTIVE)
        .order_by(Therapist.id)
    )
    return list(result.scalars().all())


async def create_therapist(
    session: AsyncSession, name: str, email: str | None = None, mobile: str = ""
) -> tuple[Therapist, User]:
    async with atomic(session, "create therapist"):
        seq = await next_sequence(session, THERAPIST_COUNTER)
        user = User(name=name, email=email, phone=mobile, role="therapist", status=USER_STATUS_ACTIVE)
        session.add(user)
        await session.flush()
        therapist = Therapist(display_id=format_therapist_id(seq), user_id=user.id, mobile=mobile)
        session.add(therapist)
        await session.flush()
        await session.refresh(therapist)
    logger.info("Therapist %s created for user %s", therapist.display_id, user.id)
    return therapist, user
