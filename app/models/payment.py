from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

PAYMENT_PENDING = "pending"
PAYMENT_PARTIALLY_PAID = "partiallypaid"
PAYMENT_PAID = "paid"


def utc_now() -> datetime:
    """Aware UTC for TIMESTAMP WITH TIME ZONE columns."""
    return datetime.now(UTC)


class Payment(SQLModel, table=True):
    __tablename__ = "payments"
    id: int | None = Field(default=None, primary_key=True)
    payment_id: str = Field(unique=True, index=True)  # e.g. INV-2024-00001
    total_amount: float = 0
    amount: float = 0
    amount_paid: float = 0
    status: str = PAYMENT_PENDING
    payment_method: str = "cash"  # updated later in the payment flow
    payment_time: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class Finance(SQLModel, table=True):
    """Income/expense ledger row."""

    __tablename__ = "finances"
    id: int | None = Field(default=None, primary_key=True)
    date: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    description: str = Field(index=True)
    type: str = "income"
    amount: float = 0
    credit_debit_status: str = "credited"
