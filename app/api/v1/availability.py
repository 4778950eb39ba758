from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from ...core.database import get_db
from ...services.availability_service import AvailabilityService
from ...schemas.availability import SlotResponse, TimeSlotsResponse, AvailableDatesResponse

router = APIRouter(prefix="/availability", tags=["Availability"])

@router.get("/dates", response_model=AvailableDatesResponse)
async def available_dates(
    location_id: str = Query(...),
    provider_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Dates the calendar should enable for a location and optional provider."""
    dates = AvailabilityService(db).get_available_dates(location_id, provider_id)

    return AvailableDatesResponse(
        location_id=location_id,
        provider_id=provider_id,
        dates=dates
    )

@router.get("/slots", response_model=TimeSlotsResponse)
async def time_slots(
    slot_date: date = Query(..., alias="date"),
    location_id: str = Query(...),
    provider_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """Open time slots for a date; without a provider, each provider's earliest slot."""
    slots = AvailabilityService(db).get_time_slots(slot_date, location_id, provider_id)

    return TimeSlotsResponse(
        date=slot_date,
        location_id=location_id,
        provider_id=provider_id,
        first_available=not provider_id,
        slots=[SlotResponse.model_validate(slot) for slot in slots]
    )
