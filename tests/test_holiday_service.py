"""Tests for the therapist holiday store."""

import pytest
from sqlalchemy import select

from app.core.db import atomic
from app.core.errors import (
    DuplicateRecordError,
    HolidayConflictError,
    NotFoundError,
    SlotIntegrityError,
    ValidationError,
)
from app.models.therapist import TherapistHoliday
from app.services.booking_service import create_booking
from app.services.holiday_service import (
    blocked_slot_ids,
    list_holidays,
    remove_holiday,
    set_full_day_holiday,
    set_partial_holiday,
)


class TestFullDayHoliday:
    @pytest.mark.asyncio
    async def test_range_creates_one_record_per_day(self, session, clinic):
        holidays = await set_full_day_holiday(session, clinic.therapist.id, "2024-06-11", "2024-06-13")
        assert [h.date for h in holidays] == ["2024-06-11", "2024-06-12", "2024-06-13"]
        assert all(h.is_full_day and h.slots == [] for h in holidays)

    @pytest.mark.asyncio
    async def test_rejected_when_a_day_has_a_session(self, session, clinic, booking_payload):
        """Scenario C: an active booking blocks the holiday and nothing is written."""
        await create_booking(session, booking_payload(("2024-06-10", "1000-1045")))

        with pytest.raises(HolidayConflictError) as exc_info:
            await set_full_day_holiday(session, clinic.therapist.id, "2024-06-09", "2024-06-10")

        err = exc_info.value
        assert err.status_code == 400
        assert "2024-06-10" in err.message
        assert err.detail["blockedDates"] == ["2024-06-10"]
        result = await session.execute(select(TherapistHoliday))
        assert result.scalars().all() == []

    @pytest.mark.asyncio
    async def test_from_after_to_is_invalid(self, session, clinic):
        with pytest.raises(ValidationError):
            await set_full_day_holiday(session, clinic.therapist.id, "2024-06-12", "2024-06-10")

    @pytest.mark.asyncio
    async def test_malformed_date_is_invalid(self, session, clinic):
        with pytest.raises(ValidationError):
            await set_full_day_holiday(session, clinic.therapist.id, "10/06/2024", "2024-06-10")

    @pytest.mark.asyncio
    async def test_unknown_therapist(self, session, clinic):
        with pytest.raises(NotFoundError):
            await set_full_day_holiday(session, 999, "2024-06-10", "2024-06-10")

    @pytest.mark.asyncio
    async def test_overwrites_partial_record(self, session, clinic):
        await set_partial_holiday(session, clinic.therapist.id, "2024-06-11", ["1000-1045"])
        holidays = await set_full_day_holiday(session, clinic.therapist.id, "2024-06-11", "2024-06-11")
        assert len(holidays) == 1
        assert holidays[0].is_full_day
        assert holidays[0].slots == []

    @pytest.mark.asyncio
    async def test_timestamp_inputs_are_truncated(self, session, clinic):
        holidays = await set_full_day_holiday(
            session, clinic.therapist.id, "2024-06-11T00:00:00.000Z", "2024-06-11T23:59:59.000Z"
        )
        assert [h.date for h in holidays] == ["2024-06-11"]

    @pytest.mark.asyncio
    async def test_duplicate_day_is_a_holiday_conflict_not_a_slot_conflict(self, session, clinic):
        await set_full_day_holiday(session, clinic.therapist.id, "2024-06-11", "2024-06-11")

        with pytest.raises(DuplicateRecordError) as exc_info:
            async with atomic(session, "set holidays"):
                session.add(
                    TherapistHoliday(therapist_id=clinic.therapist.id, date="2024-06-11", is_full_day=True, slots=[])
                )
        err = exc_info.value
        assert not isinstance(err, SlotIntegrityError)
        assert err.status_code == 409
        assert err.message.startswith("Could not set holidays")


class TestPartialHoliday:
    @pytest.mark.asyncio
    async def test_stores_labels_and_drops_unknown_ids(self, session, clinic):
        holidays = await set_partial_holiday(
            session, clinic.therapist.id, "2024-06-11", ["1000-1045", "nope", "1800-1845"]
        )
        assert len(holidays) == 1
        assert not holidays[0].is_full_day
        assert holidays[0].slots == [
            {"slotId": "1000-1045", "label": "10:00 to 10:45"},
            {"slotId": "1800-1845", "label": "18:00 to 18:45"},
        ]

    @pytest.mark.asyncio
    async def test_no_valid_slots(self, session, clinic):
        with pytest.raises(ValidationError, match="No valid slots selected"):
            await set_partial_holiday(session, clinic.therapist.id, "2024-06-11", ["nope"])

    @pytest.mark.asyncio
    async def test_rejected_for_booked_slot(self, session, clinic, booking_payload):
        await create_booking(session, booking_payload(("2024-06-10", "1000-1045")))

        with pytest.raises(HolidayConflictError) as exc_info:
            await set_partial_holiday(
                session, clinic.therapist.id, "2024-06-10", ["1000-1045", "1045-1130"]
            )
        assert exc_info.value.detail["blockedSlots"] == ["10:00 to 10:45"]

    @pytest.mark.asyncio
    async def test_other_therapists_booking_does_not_block(self, session, clinic, booking_payload):
        await create_booking(
            session, booking_payload(("2024-06-10", "1000-1045", clinic.other_therapist.id))
        )
        holidays = await set_partial_holiday(session, clinic.therapist.id, "2024-06-10", ["1000-1045"])
        assert holidays[0].date == "2024-06-10"


class TestRemoveHoliday:
    @pytest.mark.asyncio
    async def test_remove(self, session, clinic):
        await set_full_day_holiday(session, clinic.therapist.id, "2024-06-11", "2024-06-12")
        await remove_holiday(session, clinic.therapist.id, "2024-06-11")
        assert [h.date for h in await list_holidays(session, clinic.therapist.id)] == ["2024-06-12"]

    @pytest.mark.asyncio
    async def test_remove_missing(self, session, clinic):
        with pytest.raises(NotFoundError):
            await remove_holiday(session, clinic.therapist.id, "2024-06-11")


def test_full_day_blocks_every_catalog_slot():
    holiday = TherapistHoliday(therapist_id=1, date="2024-06-11", is_full_day=True, slots=[])
    assert len(blocked_slot_ids(holiday)) == 15


def test_partial_blocks_listed_slots():
    holiday = TherapistHoliday(
        therapist_id=1,
        date="2024-06-11",
        is_full_day=False,
        slots=[{"slotId": "1000-1045", "label": "10:00 to 10:45"}],
    )
    assert blocked_slot_ids(holiday) == ["1000-1045"]
