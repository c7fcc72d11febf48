"""Tests for therapist creation and lookup."""

import pytest

from app.core.errors import DuplicateRecordError, NotFoundError, SlotIntegrityError
from app.services.therapist_service import create_therapist, get_therapist, list_active_therapists


class TestCreateTherapist:
    @pytest.mark.asyncio
    async def test_issues_next_display_id(self, session):
        first, user = await create_therapist(session, "Nila")
        second, _ = await create_therapist(session, "Ravi")
        assert first.display_id == "NPL001"
        assert second.display_id == "NPL002"
        assert user.role == "therapist"

    @pytest.mark.asyncio
    async def test_taken_display_id_is_a_duplicate_not_a_slot_conflict(self, session, clinic):
        # The seeded clinic already holds NPL001 while the counter starts from zero
        with pytest.raises(DuplicateRecordError) as exc_info:
            await create_therapist(session, "Nila")
        err = exc_info.value
        assert not isinstance(err, SlotIntegrityError)
        assert err.status_code == 409
        assert err.message == "Could not create therapist: a conflicting record already exists."
        assert "time slot" not in err.message


class TestLookup:
    @pytest.mark.asyncio
    async def test_unknown_therapist(self, session, clinic):
        with pytest.raises(NotFoundError):
            await get_therapist(session, 999)

    @pytest.mark.asyncio
    async def test_active_therapists(self, session, clinic):
        therapists = await list_active_therapists(session)
        assert [t.display_id for t in therapists] == ["NPL001", "NPL002"]
