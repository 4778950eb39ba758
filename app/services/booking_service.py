"""
Booking orchestrator.

A booking is a sequence of independent writes against the hosted database
around one call to the booking workflow:

1. find or create the patient (matched on email or phone)
2. reject a second confirmed booking within the duplicate window
3. mark the slot booked
4. dispatch the workflow; on failure the slot is released again
5. record the confirmed booking (best effort)

Each step commits on its own, so a crash between 3 and 5 leaves a booked
slot without a booking record.
"""
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from datetime import date, timedelta
from typing import Optional
import logging

from ..models.appointment_slot import AppointmentSlot, SlotStatus
from ..models.booking import Booking, BookingStatus
from ..models.patient import Patient
from ..core.config import settings
from ..core.exceptions import (
    NotFoundError, SlotUnavailableError, DuplicateBookingError, DataStoreError,
    WorkflowDispatchError, WorkflowTimeoutError
)
from ..schemas.booking import BookingRequest, BookingConfirmation, BookingSummary, PatientForm
from ..schemas.workflow import (
    WorkflowBookingPayload, PatientData, AppointmentData, LocationData, ProviderData
)
from .workflow_client import WorkflowClient

logger = logging.getLogger(__name__)

BOOKING_RECEIVED_MESSAGE = (
    "Your appointment request has been received and is now being processed. "
    "It takes 5-10 minutes for bookings to be finalized."
)

def format_date_for_display(value: date) -> str:
    """Render a date like "Monday, January 6, 2025"."""
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"

def build_workflow_payload(patient: PatientForm, slot: AppointmentSlot) -> WorkflowBookingPayload:
    return WorkflowBookingPayload(
        patient=PatientData(
            first_name=patient.first_name,
            last_name=patient.last_name or "",
            email=patient.email,
            phone=patient.phone,
            date_of_birth=patient.date_of_birth.isoformat(),
            returning_patient=patient.returning_patient,
            gender=patient.sex.value,
            referring_doctor=patient.referring_doctor or "",
            reason_for_visit=patient.reason_for_visit or ""
        ),
        appointment=AppointmentData(
            date=slot.date.isoformat(),
            start_time=slot.start_time,
            end_time=slot.end_time,
            slot_id=slot.id,
            location_id=slot.location_id,
            provider_id=slot.provider_id
        ),
        location=LocationData(id=slot.location.id, name=slot.location.name),
        provider=ProviderData(id=slot.provider.id, name=slot.provider.name)
    )

def build_summary(patient: PatientForm, slot: AppointmentSlot) -> BookingSummary:
    return BookingSummary(
        patient_name=f"{patient.first_name} {patient.last_name}".strip(),
        date_of_birth=format_date_for_display(patient.date_of_birth),
        phone=patient.phone,
        email=patient.email,
        patient_type="Returning Patient" if patient.returning_patient else "New Patient",
        referring_doctor=patient.referring_doctor,
        reason_for_visit=patient.reason_for_visit,
        location=slot.location.name,
        provider=slot.provider.name,
        date=slot.date,
        date_display=format_date_for_display(slot.date),
        time=f"{slot.start_time} - {slot.end_time}"
    )

class BookingService:
    def __init__(self, db: Session, workflow_client: WorkflowClient):
        self.db = db
        self.workflow_client = workflow_client
        self.window_days = settings.DUPLICATE_BOOKING_WINDOW_DAYS

    async def create_booking(self, request: BookingRequest) -> BookingConfirmation:
        """Run the full booking sequence for one patient and slot."""
        slot = self.get_slot(request.slot_id)
        if slot.status != SlotStatus.AVAILABLE:
            raise SlotUnavailableError()

        patient = self.find_or_create_patient(request.patient)
        self.ensure_no_nearby_booking(patient.id, slot.date)

        self.set_slot_status(slot, SlotStatus.BOOKED)

        payload = build_workflow_payload(request.patient, slot)
        try:
            result = await self.workflow_client.dispatch(payload)
        except (WorkflowDispatchError, WorkflowTimeoutError):
            self.release_slot(slot)
            raise

        booking = self.record_booking(patient.id, slot.id)

        logger.info(
            f"Booking dispatched for patient {patient.id}, slot {slot.id} "
            f"(process {result.process_id}, state {result.state})"
        )

        return BookingConfirmation(
            booking_id=booking.id if booking else None,
            process_id=str(result.process_id) if result.process_id is not None else None,
            state=result.state,
            message=BOOKING_RECEIVED_MESSAGE,
            summary=build_summary(request.patient, slot)
        )

    def get_slot(self, slot_id: str) -> AppointmentSlot:
        try:
            slot = self.db.query(AppointmentSlot).options(
                joinedload(AppointmentSlot.provider),
                joinedload(AppointmentSlot.location)
            ).filter(AppointmentSlot.id == slot_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Error loading slot {slot_id}: {e}")
            raise DataStoreError(f"Failed to load appointment slot: {e}")

        if not slot:
            raise NotFoundError("Appointment slot not found")
        return slot

    def find_or_create_patient(self, form: PatientForm) -> Patient:
        """Match an existing patient on email or phone, otherwise create one."""
        try:
            patient = self.db.query(Patient).filter(
                or_(Patient.email == form.email, Patient.contact == form.phone)
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Error looking up patient: {e}")
            raise DataStoreError(f"Failed to check existing patients: {e}")

        if patient:
            if form.returning_patient and not patient.returning_patient:
                try:
                    patient.returning_patient = True
                    self.db.commit()
                except SQLAlchemyError as e:
                    self.db.rollback()
                    logger.warning(f"Failed to update returning patient status for {patient.id}: {e}")
            return patient

        patient = Patient(
            first_name=form.first_name,
            last_name=form.last_name or None,
            email=form.email,
            contact=form.phone,
            returning_patient=form.returning_patient,
            sex=form.sex.value,
            date_of_birth=form.date_of_birth
        )

        try:
            self.db.add(patient)
            self.db.commit()
            self.db.refresh(patient)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating patient: {e}")
            raise DataStoreError(f"Failed to create patient record: {e}")

        logger.info(f"Created patient {patient.id}")
        return patient

    def ensure_no_nearby_booking(self, patient_id: str, appointment_date: date) -> None:
        """Reject when the patient holds a confirmed booking within the window."""
        window = timedelta(days=self.window_days)

        try:
            existing = self.db.query(Booking).join(Booking.appointment_slot).filter(
                Booking.patient_id == patient_id,
                Booking.status == BookingStatus.CONFIRMED,
                AppointmentSlot.date >= appointment_date - window,
                AppointmentSlot.date <= appointment_date + window
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Error checking bookings for patient {patient_id}: {e}")
            raise DataStoreError(f"Failed to check existing bookings: {e}")

        if existing:
            logger.info(f"Patient {patient_id} already has booking {existing.id} near {appointment_date}")
            raise DuplicateBookingError(self.window_days)

    def set_slot_status(self, slot: AppointmentSlot, new_status: SlotStatus) -> None:
        try:
            slot.status = new_status
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating slot {slot.id} to {new_status.value}: {e}")
            raise DataStoreError(f"Failed to update slot status: {e}")

    def release_slot(self, slot: AppointmentSlot) -> None:
        """Compensate a reservation after the workflow failed."""
        try:
            self.set_slot_status(slot, SlotStatus.AVAILABLE)
            logger.info(f"Released slot {slot.id} after failed workflow dispatch")
        except DataStoreError:
            logger.error(f"Slot {slot.id} left booked; release after workflow failure did not succeed")

    def record_booking(self, patient_id: str, slot_id: str) -> Optional[Booking]:
        """Insert the confirmed booking; failures are logged and not raised."""
        booking = Booking(
            patient_id=patient_id,
            appointment_slot_id=slot_id,
            status=BookingStatus.CONFIRMED
        )

        try:
            self.db.add(booking)
            self.db.commit()
            self.db.refresh(booking)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Failed to create booking record for slot {slot_id}: {e}")
            return None

        return booking
