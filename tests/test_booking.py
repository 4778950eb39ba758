import json
import logging
from datetime import date, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import DataStoreError
from app.models import AppointmentSlot, Booking, BookingStatus, Patient, SlotStatus
from app.schemas.booking import PatientForm
from app.services.booking_service import BookingService, format_date_for_display
from .conftest import APPOINTMENT_DATE

def patient_form(**overrides):
    data = {
        "first_name": "Maria",
        "last_name": "Lopez",
        "date_of_birth": "1988-04-12",
        "email": "maria.lopez@example.com",
        "phone": "555-123-4567",
        "returning_patient": False,
        "sex": "female",
        "referring_doctor": "Dr. House",
        "reason_for_visit": "Cleaning",
    }
    data.update(overrides)
    return data

def book(client, slot_id, **patient_overrides):
    return client.post("/api/v1/bookings", json={
        "slot_id": slot_id,
        "patient": patient_form(**patient_overrides)
    })

def slot_status(db_session, slot_id):
    db_session.expire_all()
    return db_session.get(AppointmentSlot, slot_id).status

def fail_with(status_code, body):
    return lambda request: httpx.Response(status_code, json=body)

class TestBookingSuccess:

    def test_booking_confirms_and_reserves_slot(self, client, db_session, clinic, workflow):
        response = book(client, clinic["smith_0900"])
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert data["process_id"] == "4242"
        assert data["state"] == "Pending"
        assert data["booking_id"]
        assert "5-10 minutes" in data["message"]

        summary = data["summary"]
        assert summary["patient_name"] == "Maria Lopez"
        assert summary["patient_type"] == "New Patient"
        assert summary["location"] == "Downtown Clinic"
        assert summary["provider"] == "Dr. Smith"
        assert summary["time"] == "9:00 AM - 9:30 AM"
        assert summary["date_display"] == format_date_for_display(APPOINTMENT_DATE)

        assert slot_status(db_session, clinic["smith_0900"]) == SlotStatus.BOOKED

        booking = db_session.query(Booking).one()
        assert booking.appointment_slot_id == clinic["smith_0900"]
        assert booking.status == BookingStatus.CONFIRMED

        patient = db_session.query(Patient).one()
        assert patient.email == "maria.lopez@example.com"
        assert patient.contact == "555-123-4567"
        assert patient.returning_patient is False

    def test_workflow_payload(self, client, clinic, workflow):
        book(client, clinic["smith_0900"], reason_for_visit=None)

        assert len(workflow.requests) == 1
        request = workflow.requests[0]
        assert request.headers["Authorization"] == "Bearer anon-key"

        payload = json.loads(request.content)
        assert payload["patient"] == {
            "firstName": "Maria",
            "lastName": "Lopez",
            "email": "maria.lopez@example.com",
            "phone": "555-123-4567",
            "dateOfBirth": "1988-04-12",
            "returningPatient": False,
            "gender": "female",
            "referringDoctor": "Dr. House",
            "reasonForVisit": "",
        }
        assert payload["appointment"] == {
            "date": APPOINTMENT_DATE.isoformat(),
            "startTime": "9:00 AM",
            "endTime": "9:30 AM",
            "slotId": clinic["smith_0900"],
            "locationId": clinic["downtown"],
            "providerId": clinic["smith"],
        }
        assert payload["location"] == {"id": clinic["downtown"], "name": "Downtown Clinic"}
        assert payload["provider"] == {"id": clinic["smith"], "name": "Dr. Smith"}

    def test_existing_patient_matched_by_phone(self, client, db_session, clinic, workflow):
        book(client, clinic["smith_0900"])

        # Different email, same phone, far enough away from the first booking
        second_date = APPOINTMENT_DATE + timedelta(days=4)
        response = book(
            client, clinic["smith_fri"],
            email="maria@newmail.com",
            phone="(555) 123-4567",
            returning_patient=True
        )
        assert response.status_code == 200
        assert response.json()["summary"]["date"] == second_date.isoformat()

        patients = db_session.query(Patient).all()
        assert len(patients) == 1
        assert patients[0].returning_patient is True
        assert db_session.query(Booking).count() == 2

class TestDuplicateBookings:

    def test_second_booking_same_day_rejected(self, client, db_session, clinic, workflow):
        assert book(client, clinic["smith_0900"]).status_code == 200

        response = book(client, clinic["adams_1030"])
        assert response.status_code == 409
        assert response.json()["detail"] == (
            "You already have a confirmed booking within 3 days. "
            "Please contact us if you need to book another appointment."
        )

        # Nothing was reserved or dispatched for the rejected attempt
        assert slot_status(db_session, clinic["adams_1030"]) == SlotStatus.AVAILABLE
        assert len(workflow.requests) == 1

    def test_window_edge_is_inclusive(self, client, clinic, workflow):
        assert book(client, clinic["smith_0900"]).status_code == 200

        response = book(client, clinic["smith_thu"])
        assert response.status_code == 409

    def test_cancelled_bookings_do_not_count(self, client, db_session, clinic, workflow):
        assert book(client, clinic["smith_0900"]).status_code == 200

        booking = db_session.query(Booking).one()
        booking.status = BookingStatus.CANCELLED
        db_session.commit()

        assert book(client, clinic["adams_1030"]).status_code == 200

class TestWorkflowFailures:

    def test_error_response_releases_slot(self, client, db_session, clinic, workflow):
        workflow.handler = fail_with(500, {"success": False, "error": "Robot unavailable"})

        response = book(client, clinic["smith_0900"])
        assert response.status_code == 502
        assert response.json()["detail"] == "Robot unavailable"

        assert slot_status(db_session, clinic["smith_0900"]) == SlotStatus.AVAILABLE
        assert db_session.query(Booking).count() == 0

    def test_error_without_body_uses_status_text(self, client, db_session, clinic, workflow):
        workflow.handler = lambda request: httpx.Response(503, text="down")

        response = book(client, clinic["smith_0900"])
        assert response.status_code == 502
        assert response.json()["detail"] == "Booking failed: Service Unavailable"
        assert slot_status(db_session, clinic["smith_0900"]) == SlotStatus.AVAILABLE

    def test_unsuccessful_body_releases_slot(self, client, db_session, clinic, workflow):
        workflow.handler = fail_with(200, {"success": False})

        response = book(client, clinic["smith_0900"])
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to process booking request"
        assert slot_status(db_session, clinic["smith_0900"]) == SlotStatus.AVAILABLE

    def test_timeout_releases_slot(self, client, db_session, clinic, workflow):
        def time_out(request):
            raise httpx.ReadTimeout("timed out", request=request)

        workflow.handler = time_out

        response = book(client, clinic["smith_0900"])
        assert response.status_code == 504
        assert response.json()["detail"] == "Booking request timed out. Please try again."
        assert slot_status(db_session, clinic["smith_0900"]) == SlotStatus.AVAILABLE

    def test_patient_kept_after_failed_dispatch(self, client, db_session, clinic, workflow):
        workflow.handler = fail_with(500, {"success": False, "error": "Robot unavailable"})

        book(client, clinic["smith_0900"])

        assert db_session.query(Patient).count() == 1

class TestSlotChecks:

    def test_unknown_slot(self, client, clinic, workflow):
        response = book(client, "missing-slot")
        assert response.status_code == 404
        assert response.json()["detail"] == "Appointment slot not found"

    def test_booked_slot_rejected(self, client, clinic, workflow):
        response = book(client, clinic["adams_0200pm_booked"])
        assert response.status_code == 409
        assert workflow.requests == []

class TestPatientFormValidation:

    @pytest.mark.parametrize("overrides", [
        {"first_name": "   "},
        {"last_name": ""},
        {"email": "not-an-email"},
        {"phone": "555-1234"},
        {"sex": "other"},
        {"referring_doctor": " "},
        {"date_of_birth": (date.today() + timedelta(days=1)).isoformat()},
    ])
    def test_invalid_form_rejected(self, client, clinic, workflow, overrides):
        response = book(client, clinic["smith_0900"], **overrides)
        assert response.status_code == 422
        assert workflow.requests == []

    def test_phone_is_normalized(self, client, db_session, clinic, workflow):
        response = book(client, clinic["smith_0900"], phone="(555) 987 6543")
        assert response.status_code == 200
        assert response.json()["summary"]["phone"] == "555-987-6543"

class TestDataStoreFailures:

    def service(self, db):
        return BookingService(db, workflow_client=MagicMock())

    def test_patient_lookup_failure(self):
        db = MagicMock()
        db.query.side_effect = SQLAlchemyError("connection reset")

        with pytest.raises(DataStoreError) as exc_info:
            self.service(db).find_or_create_patient(PatientForm(**patient_form()))

        assert exc_info.value.status_code == 503
        assert exc_info.value.detail.startswith("Failed to check existing patients: ")

    def test_patient_create_failure(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None
        db.commit.side_effect = SQLAlchemyError("insert failed")

        with pytest.raises(DataStoreError) as exc_info:
            self.service(db).find_or_create_patient(PatientForm(**patient_form()))

        assert exc_info.value.detail.startswith("Failed to create patient record: ")
        db.rollback.assert_called_once()

    def test_returning_flag_update_failure_is_not_fatal(self):
        existing = Patient(id="patient-1", first_name="Maria", returning_patient=False)
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = existing
        db.commit.side_effect = SQLAlchemyError("update failed")

        patient = self.service(db).find_or_create_patient(
            PatientForm(**patient_form(returning_patient=True))
        )

        assert patient is existing
        db.rollback.assert_called_once()

    def test_booking_check_failure(self):
        db = MagicMock()
        db.query.side_effect = SQLAlchemyError("timeout")

        with pytest.raises(DataStoreError) as exc_info:
            self.service(db).ensure_no_nearby_booking("patient-1", APPOINTMENT_DATE)

        assert exc_info.value.detail.startswith("Failed to check existing bookings: ")

    def test_slot_update_failure(self):
        db = MagicMock()
        db.commit.side_effect = SQLAlchemyError("update failed")
        slot = SimpleNamespace(id="slot-1", status=SlotStatus.AVAILABLE)

        with pytest.raises(DataStoreError) as exc_info:
            self.service(db).set_slot_status(slot, SlotStatus.BOOKED)

        assert exc_info.value.status_code == 503
        assert exc_info.value.detail.startswith("Failed to update slot status: ")
        db.rollback.assert_called_once()

    def test_slot_release_failure_is_logged(self, caplog):
        db = MagicMock()
        db.commit.side_effect = SQLAlchemyError("update failed")
        slot = SimpleNamespace(id="slot-1", status=SlotStatus.BOOKED)

        with caplog.at_level(logging.ERROR, logger="app.services.booking_service"):
            self.service(db).release_slot(slot)

        assert "Slot slot-1 left booked" in caplog.text

class TestBookingRecord:

    def test_record_failure_is_swallowed(self):
        db = MagicMock()
        db.commit.side_effect = SQLAlchemyError("insert failed")

        service = BookingService(db, workflow_client=MagicMock())

        assert service.record_booking("patient-1", "slot-1") is None
        db.rollback.assert_called_once()

def test_format_date_for_display():
    assert format_date_for_display(date(2025, 1, 6)) == "Monday, January 6, 2025"
