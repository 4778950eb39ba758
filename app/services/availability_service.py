"""
Slot availability lookups for the date and time pickers.

Slots store their start time the way they are displayed ("9:30 AM"), so
ordering is done here after parsing rather than by the database.
"""
from sqlalchemy.orm import Session, joinedload
from datetime import date
from typing import List, Optional
import logging

from ..models.appointment_slot import AppointmentSlot, SlotStatus

logger = logging.getLogger(__name__)

# Weekday numbers (Monday == 0) the calendar never offers
CLOSED_WEEKDAYS = (5, 6)

# Unparseable start times sort after every real time of day
UNPARSEABLE_TIME = 24 * 60

def parse_time_to_minutes(time_str: str) -> int:
    """Convert a 12-hour "h:mm AM/PM" string to minutes after midnight."""
    clock, _, period = time_str.strip().partition(" ")
    hours, minutes = (int(part) for part in clock.split(":"))
    period = period.strip().upper()
    if period not in ("AM", "PM") or not 1 <= hours <= 12 or not 0 <= minutes < 60:
        raise ValueError(f"Not a 12-hour time: {time_str!r}")
    # 12 AM is midnight and 12 PM is noon
    hours %= 12
    if period == "PM":
        hours += 12
    return hours * 60 + minutes

def _slot_sort_key(slot: AppointmentSlot):
    try:
        minutes = parse_time_to_minutes(slot.start_time)
    except ValueError:
        logger.warning(f"Slot {slot.id} has unparseable start time {slot.start_time!r}")
        minutes = UNPARSEABLE_TIME
    provider_name = slot.provider.name if slot.provider else ""
    return (minutes, provider_name.casefold())

def sort_slots(slots: List[AppointmentSlot]) -> List[AppointmentSlot]:
    """Order slots by time of day, then provider name."""
    return sorted(slots, key=_slot_sort_key)

def earliest_slot_per_provider(slots: List[AppointmentSlot]) -> List[AppointmentSlot]:
    """Keep the first slot seen for each provider; input must already be sorted."""
    seen = set()
    earliest = []
    for slot in slots:
        if slot.provider_id in seen:
            continue
        seen.add(slot.provider_id)
        earliest.append(slot)
    return earliest

class AvailabilityService:
    def __init__(self, db: Session):
        self.db = db

    def get_time_slots(
        self,
        slot_date: date,
        location_id: str,
        provider_id: Optional[str] = None
    ) -> List[AppointmentSlot]:
        """
        Open slots at a location on a date.

        With no provider ("first available") only each provider's earliest
        slot is returned.
        """
        query = self.db.query(AppointmentSlot).options(
            joinedload(AppointmentSlot.provider),
            joinedload(AppointmentSlot.location)
        ).filter(
            AppointmentSlot.date == slot_date,
            AppointmentSlot.location_id == location_id,
            AppointmentSlot.status == SlotStatus.AVAILABLE
        )

        if provider_id:
            query = query.filter(AppointmentSlot.provider_id == provider_id)

        slots = sort_slots(query.all())

        if not provider_id:
            slots = earliest_slot_per_provider(slots)

        logger.info(
            f"Found {len(slots)} slots for location {location_id} on {slot_date}"
            f" (provider: {provider_id or 'first available'})"
        )
        return slots

    def get_available_dates(
        self,
        location_id: str,
        provider_id: Optional[str] = None,
        today: Optional[date] = None
    ) -> List[date]:
        """Distinct bookable weekdays from today onward with at least one open slot."""
        today = today or date.today()

        query = self.db.query(AppointmentSlot.date).filter(
            AppointmentSlot.location_id == location_id,
            AppointmentSlot.status == SlotStatus.AVAILABLE,
            AppointmentSlot.date >= today
        )

        if provider_id:
            query = query.filter(AppointmentSlot.provider_id == provider_id)

        dates = {row[0] for row in query.distinct().all()}
        return sorted(d for d in dates if d.weekday() not in CLOSED_WEEKDAYS)
