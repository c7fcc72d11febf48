"""Tests for counter sequences and display id formatting."""

import pytest

from app.services.counter_service import (
    APPOINTMENT_COUNTER,
    PAYMENT_COUNTER,
    format_appointment_id,
    format_invoice_id,
    format_therapist_id,
    next_sequence,
)


class TestNextSequence:
    @pytest.mark.asyncio
    async def test_starts_at_one_and_increments(self, session):
        assert await next_sequence(session, APPOINTMENT_COUNTER) == 1
        assert await next_sequence(session, APPOINTMENT_COUNTER) == 2
        assert await next_sequence(session, APPOINTMENT_COUNTER) == 3

    @pytest.mark.asyncio
    async def test_counters_are_independent(self, session):
        await next_sequence(session, APPOINTMENT_COUNTER)
        await next_sequence(session, APPOINTMENT_COUNTER)
        assert await next_sequence(session, PAYMENT_COUNTER) == 1


class TestFormatting:
    def test_appointment_id(self):
        assert format_appointment_id(1) == "APT000001"
        assert format_appointment_id(123456) == "APT123456"

    def test_invoice_id(self):
        assert format_invoice_id(7, year=2024) == "INV-2024-00007"

    def test_therapist_id(self):
        assert format_therapist_id(12) == "NPL012"
