from pydantic import BaseModel, ConfigDict, Field


class DaySummary(BaseModel):
    """Occupancy of one day across the eligible therapists."""

    model_config = ConfigDict(populate_by_name=True)

    booked_slots: int = Field(0, alias="bookedSlots")
    total_available_slots: int = Field(0, alias="totalAvailableSlots")
    limited_booked_slots: int = Field(0, alias="limitedBookedSlots")
    total_limited_available_slots: int = Field(0, alias="totalLimitedAvailableSlots")
    # therapist display id -> booked slot ids; the exact-conflict lookup
    booked_slot_map: dict[str, list[str]] = Field(default_factory=dict, alias="BookedSlots")
    # therapist display id -> holiday-blocked slot ids
    holiday_slot_map: dict[str, list[str]] = Field(default_factory=dict, alias="HolidaySlots")

    def is_booked(self, therapist_display_id: str, slot_id: str) -> bool:
        return slot_id in self.booked_slot_map.get(therapist_display_id, [])

    def is_holiday(self, therapist_display_id: str, slot_id: str) -> bool:
        return slot_id in self.holiday_slot_map.get(therapist_display_id, [])
