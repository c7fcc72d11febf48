from datetime import date

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.counter import Counter

APPOINTMENT_COUNTER = "appointment"
PAYMENT_COUNTER = "payment"
THERAPIST_COUNTER = "therapist"


async def next_sequence(session: AsyncSession, name: str) -> int:
    """Atomically increment the named counter and return the new value (1 on first use)."""
    dialect = session.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = insert(Counter).values(name=name, seq=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Counter.name],
        set_={"seq": Counter.seq + 1},
    ).returning(Counter.seq)
    result = await session.execute(stmt)
    return result.scalar_one()


def format_appointment_id(seq: int) -> str:
    return f"{settings.appointment_id_prefix}{seq:0{settings.appointment_id_width}d}"


def format_invoice_id(seq: int, year: int | None = None) -> str:
    year = year or date.today().year
    return f"{settings.invoice_id_prefix}-{year}-{seq:0{settings.invoice_id_width}d}"


def format_therapist_id(seq: int) -> str:
    return f"{settings.therapist_id_prefix}{seq:0{settings.therapist_id_width}d}"
