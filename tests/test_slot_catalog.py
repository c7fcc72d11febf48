"""Tests for the daily slot catalog."""

from app.services import slot_catalog


class TestCatalogShape:
    def test_ten_normal_and_five_limited(self):
        assert len(slot_catalog.all_slots()) == 15
        assert slot_catalog.NORMAL_SLOTS_PER_DAY == 10
        assert slot_catalog.LIMITED_SLOTS_PER_DAY == 5

    def test_ids_are_unique(self):
        ids = [s.slot_id for s in slot_catalog.all_slots()]
        assert len(ids) == len(set(ids))

    def test_limited_slots_are_early_and_late(self):
        limited = {s.slot_id for s in slot_catalog.limited_slots()}
        assert limited == {"0830-0915", "0915-1000", "1800-1845", "1845-1930", "1930-2015"}

    def test_lunch_gap_has_no_slot(self):
        assert slot_catalog.get_slot("1345-1415") is None


class TestLookups:
    def test_is_limited(self):
        assert slot_catalog.is_limited("0830-0915")
        assert not slot_catalog.is_limited("1000-1045")

    def test_unknown_id_is_not_limited(self):
        assert not slot_catalog.is_limited("2100-2145")

    def test_label(self):
        assert slot_catalog.label("1500-1545") == "15:00 to 15:45"

    def test_unknown_label_falls_back_to_id(self):
        assert slot_catalog.label("bogus") == "bogus"
