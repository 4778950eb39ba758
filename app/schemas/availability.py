from pydantic import BaseModel, ConfigDict, computed_field
from typing import List, Optional
import datetime as dt

from ..models.appointment_slot import SlotStatus
from .catalog import LocationRef, ProviderRef

class SlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    location_id: str
    provider_id: str
    date: dt.date
    start_time: str
    end_time: str
    status: SlotStatus
    provider: ProviderRef
    location: LocationRef

    @computed_field
    @property
    def period(self) -> str:
        """AM/PM bucket the picker groups the slot under."""
        return "PM" if "PM" in self.start_time.upper() else "AM"

class TimeSlotsResponse(BaseModel):
    date: dt.date
    location_id: str
    provider_id: Optional[str] = None
    first_available: bool
    slots: List[SlotResponse]

class AvailableDatesResponse(BaseModel):
    location_id: str
    provider_id: Optional[str] = None
    dates: List[dt.date]
