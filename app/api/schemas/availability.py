from pydantic import BaseModel

from app.models.availability import DaySummary


class AvailabilityResponse(BaseModel):
    success: bool = True
    data: dict[str, DaySummary]
