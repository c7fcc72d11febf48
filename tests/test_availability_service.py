"""Tests for the per-day availability summary."""

from datetime import date, timedelta

import pytest

from app.core.errors import ValidationError
from app.models.user import User
from app.services.availability_service import resolve_window, summarize, summarize_month
from app.services.booking_service import create_booking
from app.services.holiday_service import set_full_day_holiday, set_partial_holiday


class TestWindow:
    def test_default_is_fourteen_days_from_today(self):
        start, end = resolve_window(None, None)
        assert start == date.today()
        assert end - start == timedelta(days=13)

    def test_only_from_given(self):
        start, end = resolve_window("2024-06-10", None)
        assert (start, end) == (date(2024, 6, 10), date(2024, 6, 23))

    @pytest.mark.parametrize("bad", ["2024-06-10garbage", "2024-06-10T08:00:00Z", "2024-6-10"])
    def test_window_dates_must_be_exact(self, bad):
        with pytest.raises(ValidationError):
            resolve_window(bad, None)
        with pytest.raises(ValidationError):
            resolve_window("2024-06-10", bad)

    def test_from_after_to(self):
        with pytest.raises(ValidationError):
            resolve_window("2024-06-12", "2024-06-10")

    def test_malformed(self):
        with pytest.raises(ValidationError):
            resolve_window("June 10", None)


class TestSummarize:
    @pytest.mark.asyncio
    async def test_empty_day(self, session, clinic):
        data = await summarize(session, "2024-06-10", "2024-06-10")
        day = data["10-06-2024"]
        assert day.booked_slots == 0
        assert day.total_available_slots == 20
        assert day.total_limited_available_slots == 10
        assert day.booked_slot_map == {}

    @pytest.mark.asyncio
    async def test_keys_cover_inclusive_window(self, session, clinic):
        data = await summarize(session, "2024-06-29", "2024-07-02")
        assert list(data) == ["29-06-2024", "30-06-2024", "01-07-2024", "02-07-2024"]

    @pytest.mark.asyncio
    async def test_booking_is_counted(self, session, clinic, booking_payload):
        """Scenario A."""
        await create_booking(session, booking_payload(("2024-06-10", "1000-1045")))

        day = (await summarize(session, "2024-06-10", "2024-06-10"))["10-06-2024"]
        assert day.booked_slots == 1
        assert day.limited_booked_slots == 0
        assert day.booked_slot_map == {"NPL001": ["1000-1045"]}

    @pytest.mark.asyncio
    async def test_limited_slot_counted_separately(self, session, clinic, booking_payload):
        await create_booking(
            session, booking_payload(("2024-06-10", "1930-2015"), ("2024-06-10", "0830-0915"))
        )
        day = (await summarize(session, "2024-06-10", "2024-06-10"))["10-06-2024"]
        assert day.booked_slots == 0
        assert day.limited_booked_slots == 2
        # catalog order, not insertion order
        assert day.booked_slot_map["NPL001"] == ["0830-0915", "1930-2015"]

    @pytest.mark.asyncio
    async def test_full_day_holiday_leaves_denominator(self, session, clinic):
        """Scenario D."""
        await set_full_day_holiday(session, clinic.therapist.id, "2024-06-11", "2024-06-11")

        data = await summarize(session, "2024-06-10", "2024-06-11")
        assert data["10-06-2024"].total_available_slots == 20
        assert data["11-06-2024"].total_available_slots == 10
        assert data["11-06-2024"].total_limited_available_slots == 5
        assert len(data["11-06-2024"].holiday_slot_map["NPL001"]) == 15

    @pytest.mark.asyncio
    async def test_partial_holiday_also_excludes_therapist(self, session, clinic, booking_payload):
        await create_booking(session, booking_payload(("2024-06-10", "1000-1045")))
        await set_partial_holiday(session, clinic.therapist.id, "2024-06-10", ["1500-1545"])

        day = (await summarize(session, "2024-06-10", "2024-06-10"))["10-06-2024"]
        assert day.total_available_slots == 10
        assert day.booked_slots == 0
        # still visible to the exact-conflict lookup
        assert day.is_booked("NPL001", "1000-1045")
        assert day.is_holiday("NPL001", "1500-1545")

    @pytest.mark.asyncio
    async def test_therapist_filter(self, session, clinic, booking_payload):
        await create_booking(session, booking_payload(("2024-06-10", "1000-1045")))

        data = await summarize(session, "2024-06-10", "2024-06-10", therapist_id=clinic.other_therapist.id)
        day = data["10-06-2024"]
        assert day.total_available_slots == 10
        assert day.booked_slots == 0
        assert day.booked_slot_map == {}

    @pytest.mark.asyncio
    async def test_unknown_therapist_filter_is_empty(self, session, clinic):
        assert await summarize(session, "2024-06-10", "2024-06-10", therapist_id=999) == {}
        assert await summarize(session, "2024-06-10", "2024-06-10", therapist_id="abc") == {}

    @pytest.mark.asyncio
    async def test_inactive_therapist_not_counted(self, session, clinic):
        user = await session.get(User, clinic.other_therapist.user_id)
        user.status = "suspended"
        session.add(user)
        await session.flush()

        day = (await summarize(session, "2024-06-10", "2024-06-10"))["10-06-2024"]
        assert day.total_available_slots == 10

    @pytest.mark.asyncio
    async def test_serializes_with_wire_names(self, session, clinic, booking_payload):
        await create_booking(session, booking_payload(("2024-06-10", "1000-1045")))
        day = (await summarize(session, "2024-06-10", "2024-06-10"))["10-06-2024"]
        assert day.model_dump(by_alias=True) == {
            "bookedSlots": 1,
            "totalAvailableSlots": 20,
            "limitedBookedSlots": 0,
            "totalLimitedAvailableSlots": 10,
            "BookedSlots": {"NPL001": ["1000-1045"]},
            "HolidaySlots": {},
        }


class TestSummarizeMonth:
    @pytest.mark.asyncio
    async def test_whole_month(self, session, clinic):
        data = await summarize_month(session, 2024, 2)
        assert len(data) == 29
        assert "29-02-2024" in data

    @pytest.mark.asyncio
    async def test_invalid_month(self, session, clinic):
        with pytest.raises(ValidationError):
            await summarize_month(session, 2024, 13)
        with pytest.raises(ValidationError):
            await summarize_month(session, None, 2)
