from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, text
from sqlmodel import Field, SQLModel

# Sessions in these states no longer hold their slot
INACTIVE_SESSION_STATUSES = ("cancelled", "cancelledByTherapist", "deleted")

_ACTIVE_SESSION_CLAUSE = "status IS NULL OR status NOT IN ('cancelled', 'cancelledByTherapist', 'deleted')"
ACTIVE_SLOT_INDEX = "uq_booking_sessions_active_slot"


def utc_now() -> datetime:
    """Aware UTC for TIMESTAMP WITH TIME ZONE columns."""
    return datetime.now(UTC)


def is_active_session_status(status: str | None) -> bool:
    return not status or status not in INACTIVE_SESSION_STATUSES


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    id: int | None = Field(default=None, primary_key=True)
    appointment_id: str = Field(unique=True, index=True)  # e.g. APT000001
    patient_id: int = Field(foreign_key="patients.id", index=True)
    package_id: int = Field(foreign_key="packages.id")
    therapy_id: int = Field(foreign_key="therapy_types.id")
    therapist_id: int = Field(foreign_key="therapists.id", index=True)
    payment_id: int | None = Field(default=None, foreign_key="payments.id")
    status: str | None = None
    payment_status: str = "pending"
    notes: str | None = None
    remark: str | None = None
    channel: str | None = None
    discount_coupon: str | None = None
    discount_time: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class BookingSession(SQLModel, table=True):
    """A session owned by a booking; at most one active session per (date, slot, therapist)."""

    __tablename__ = "booking_sessions"
    __table_args__ = (
        Index(
            ACTIVE_SLOT_INDEX,
            "date",
            "slot_id",
            "therapist_id",
            unique=True,
            postgresql_where=text(_ACTIVE_SESSION_CLAUSE),
            sqlite_where=text(_ACTIVE_SESSION_CLAUSE),
        ),
    )
    id: int | None = Field(default=None, primary_key=True)
    booking_id: int = Field(
        sa_column=Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    )
    date: str = Field(index=True)  # YYYY-MM-DD
    slot_id: str
    time: str = ""
    therapist_id: int = Field(foreign_key="therapists.id", index=True)
    therapist_display_id: str = ""  # denormalised for conflict lookup without a join
    therapy_type_id: int | None = Field(default=None, foreign_key="therapy_types.id")
    is_checked_in: bool = False
    status: str | None = None

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.date, self.slot_id, self.therapist_id)


class BookingRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


BOOKING_REQUEST_TRANSITIONS: dict[BookingRequestStatus, frozenset[BookingRequestStatus]] = {
    BookingRequestStatus.PENDING: frozenset({BookingRequestStatus.APPROVED, BookingRequestStatus.REJECTED}),
    BookingRequestStatus.APPROVED: frozenset(),
    BookingRequestStatus.REJECTED: frozenset(),
}


def can_transition(current: BookingRequestStatus, target: BookingRequestStatus) -> bool:
    return target in BOOKING_REQUEST_TRANSITIONS[current]


class BookingRequest(SQLModel, table=True):
    """A patient's request for a booking; fulfilled by an admin-created booking."""

    __tablename__ = "booking_requests"
    id: int | None = Field(default=None, primary_key=True)
    request_id: str = Field(unique=True, index=True)
    patient_id: int = Field(foreign_key="patients.id")
    package_id: int | None = Field(default=None, foreign_key="packages.id")
    therapy_id: int | None = Field(default=None, foreign_key="therapy_types.id")
    status: str = Field(default=BookingRequestStatus.PENDING.value, index=True)
    booking_id: int | None = Field(default=None, foreign_key="bookings.id")
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionIn(CamelModel):
    date: str | None = None
    slot_id: str | None = None
    id: str | None = None  # legacy name for slot_id
    therapist_id: int | None = None
    therapist: int | None = None
    therapy_type_id: int | None = None
    therapy_type: int | None = None
    time: str | None = None
    is_checked_in: bool | None = None
    status: str | None = None


class BookingCreate(CamelModel):
    # Required fields are checked by the booking service so a missing one is a 400, not a 422
    package: int | None = None
    patient: int | None = None
    therapy: int | None = None
    therapist: int | None = None
    sessions: list[SessionIn] | None = None
    coupon: str | dict[str, Any] | None = None
    status: str | None = None
    notes: str | None = None
    remark: str | None = None
    channel: str | None = None
    is_booking_request: bool = False
    booking_request_id: int | None = None


class BookingUpdate(CamelModel):
    package: int | None = None
    patient: int | None = None
    therapy: int | None = None
    therapist: int | None = None
    sessions: list[SessionIn] | None = None
    coupon: str | dict[str, Any] | None = None
    status: str | None = None
    notes: str | None = None
    remark: str | None = None
    channel: str | None = None
