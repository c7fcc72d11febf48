"""
Daily slot catalog.

Fixed, ordered set of named session intervals every other component joins
against: 10 normal slots plus 5 limited (early/late) slots per therapist per
day. Changing this table is a schema migration: bump CATALOG_VERSION.
"""

from dataclasses import dataclass

CATALOG_VERSION = 1


@dataclass(frozen=True)
class SlotDefinition:
    slot_id: str
    label: str
    is_limited: bool = False


_SLOTS: tuple[SlotDefinition, ...] = (
    SlotDefinition("1000-1045", "10:00 to 10:45"),
    SlotDefinition("1045-1130", "10:45 to 11:30"),
    SlotDefinition("1130-1215", "11:30 to 12:15"),
    SlotDefinition("1215-1300", "12:15 to 13:00"),
    SlotDefinition("1300-1345", "13:00 to 13:45"),
    SlotDefinition("1415-1500", "14:15 to 15:00"),
    SlotDefinition("1500-1545", "15:00 to 15:45"),
    SlotDefinition("1545-1630", "15:45 to 16:30"),
    SlotDefinition("1630-1715", "16:30 to 17:15"),
    SlotDefinition("1715-1800", "17:15 to 18:00"),
    SlotDefinition("0830-0915", "08:30 to 09:15", is_limited=True),
    SlotDefinition("0915-1000", "09:15 to 10:00", is_limited=True),
    SlotDefinition("1800-1845", "18:00 to 18:45", is_limited=True),
    SlotDefinition("1845-1930", "18:45 to 19:30", is_limited=True),
    SlotDefinition("1930-2015", "19:30 to 20:15", is_limited=True),
)

_BY_ID: dict[str, SlotDefinition] = {s.slot_id: s for s in _SLOTS}


def all_slots() -> list[SlotDefinition]:
    return list(_SLOTS)


def normal_slots() -> list[SlotDefinition]:
    return [s for s in _SLOTS if not s.is_limited]


def limited_slots() -> list[SlotDefinition]:
    return [s for s in _SLOTS if s.is_limited]


def get_slot(slot_id: str) -> SlotDefinition | None:
    return _BY_ID.get(slot_id)


def is_limited(slot_id: str) -> bool:
    slot = _BY_ID.get(slot_id)
    return bool(slot and slot.is_limited)


def label(slot_id: str) -> str:
    """Human label for a slot id; unknown ids are echoed back."""
    slot = _BY_ID.get(slot_id)
    return slot.label if slot else slot_id


NORMAL_SLOTS_PER_DAY = len(normal_slots())
LIMITED_SLOTS_PER_DAY = len(limited_slots())
