from pydantic import BaseModel, Field, ValidationInfo, field_validator
from typing import Optional
from enum import Enum
import datetime as dt
import re

PHONE_PATTERN = re.compile(r"^\d{3}-\d{3}-\d{4}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELD_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "referring_doctor": "Referring doctor",
}

def format_phone_number(phone: str) -> str:
    """Reduce a phone number to digits and render 10+ digits as XXX-XXX-XXXX."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) >= 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:10]}"
    return digits

class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"

class PatientForm(BaseModel):
    """Patient intake form submitted with a booking."""

    first_name: str
    last_name: str
    date_of_birth: dt.date
    email: str
    phone: str
    returning_patient: bool = False
    sex: Sex
    referring_doctor: str
    reason_for_visit: Optional[str] = None

    @field_validator("first_name", "last_name", "referring_doctor")
    @classmethod
    def require_text(cls, v: str, info: ValidationInfo) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{REQUIRED_FIELD_LABELS[info.field_name]} is required")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: dt.date) -> dt.date:
        if v > dt.date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email is required")
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Phone number is required")
        v = format_phone_number(v)
        if not PHONE_PATTERN.match(v):
            raise ValueError("Please enter a valid phone number (XXX-XXX-XXXX)")
        return v

    @field_validator("reason_for_visit")
    @classmethod
    def blank_reason_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

class BookingRequest(BaseModel):
    slot_id: str = Field(..., min_length=1)
    patient: PatientForm

class BookingSummary(BaseModel):
    patient_name: str
    date_of_birth: str
    phone: str
    email: str
    patient_type: str
    referring_doctor: str
    reason_for_visit: Optional[str] = None
    location: str
    provider: str
    date: dt.date
    date_display: str
    time: str

class BookingConfirmation(BaseModel):
    success: bool = True
    booking_id: Optional[str] = None
    process_id: Optional[str] = None
    state: Optional[str] = None
    message: str
    summary: BookingSummary
