"""Wire format shared by the booking function and the RPA process.

Field names are camelCase on the wire; Python code uses snake_case.
The booking function only insists on the patient's email and phone, so
every other booking field is optional and unknown keys are forwarded as
received.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, Union

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class PassThroughModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

class PatientData(PassThroughModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[str] = None
    returning_patient: Optional[bool] = None
    gender: Optional[str] = None
    referring_doctor: Optional[str] = None
    reason_for_visit: Optional[str] = None

class AppointmentData(PassThroughModel):
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    slot_id: Optional[str] = None
    location_id: Optional[str] = None
    provider_id: Optional[str] = None

class LocationData(PassThroughModel):
    id: Optional[str] = None
    name: Optional[str] = None

class ProviderData(PassThroughModel):
    id: Optional[str] = None
    name: Optional[str] = None

class WorkflowBookingPayload(PassThroughModel):
    patient: Optional[PatientData] = None
    appointment: Optional[AppointmentData] = None
    location: Optional[LocationData] = None
    provider: Optional[ProviderData] = None

class WorkflowResult(CamelModel):
    success: bool
    process_id: Optional[Union[int, str]] = None
    job_key: Optional[str] = None
    state: Optional[str] = None
    creation_time: Optional[str] = None
    organization_unit_id: Optional[Union[int, str]] = None
    error: Optional[str] = None
