from .location import Location
from .provider import Provider
from .appointment_slot import AppointmentSlot, SlotStatus
from .patient import Patient
from .booking import Booking, BookingStatus

__all__ = [
    "Location",
    "Provider",
    "AppointmentSlot",
    "SlotStatus",
    "Patient",
    "Booking",
    "BookingStatus",
]
