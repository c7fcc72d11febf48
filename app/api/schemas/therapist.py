from pydantic import BaseModel

from app.models.booking import CamelModel


class TherapistCreate(CamelModel):
    name: str
    email: str | None = None
    mobile: str = ""


class TherapistCreated(CamelModel):
    id: int
    therapist_id: str
    user_id: int
    name: str


class HolidayRequest(CamelModel):
    """Full day range ({fromDate, toDate}) or partial day ({date, slots})."""

    from_date: str | None = None
    to_date: str | None = None
    date: str | None = None
    slots: list[str] | None = None


class HolidaySlot(CamelModel):
    slot_id: str
    label: str


class HolidayPublic(CamelModel):
    date: str
    is_full_day: bool
    slots: list[HolidaySlot]
    reason: str = ""


class HolidayListResponse(BaseModel):
    success: bool = True
    message: str | None = None
    holidays: list[HolidayPublic]
