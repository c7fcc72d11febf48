from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


class Therapist(SQLModel, table=True):
    __tablename__ = "therapists"
    id: int | None = Field(default=None, primary_key=True)
    display_id: str = Field(unique=True, index=True)  # e.g. NPL001
    user_id: int = Field(foreign_key="users.id", index=True)
    mobile: str = ""


class TherapistHoliday(SQLModel, table=True):
    """One record per (therapist, date); a full day record carries no slots."""

    __tablename__ = "therapist_holidays"
    __table_args__ = (UniqueConstraint("therapist_id", "date", name="uq_therapist_holidays_day"),)
    id: int | None = Field(default=None, primary_key=True)
    therapist_id: int = Field(foreign_key="therapists.id", index=True)
    date: str = Field(index=True)  # YYYY-MM-DD
    is_full_day: bool = False
    slots: list[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    reason: str = ""
