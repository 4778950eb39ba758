"""
Booking function.

Stands between the booking flow and the RPA process: validates the payload,
starts the job with the process credentials, and reshapes the job record
into ``{success, processId, jobKey, state, ...}``. Every failure is answered
with ``{success: false, error}``.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
import logging

import httpx

from ..schemas.workflow import WorkflowBookingPayload
from ..services.workflow_client import AutomationClient, AutomationError, get_automation_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["Functions"])

def _failure(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": message}
    )

@router.post("/workflow-booking")
async def workflow_booking(
    request: Request,
    automation_client: AutomationClient = Depends(get_automation_client)
):
    """Forward a booking payload to the RPA process."""
    try:
        # Malformed JSON and schema errors are both ValueErrors
        payload = WorkflowBookingPayload.model_validate(await request.json())
    except ValueError as e:
        logger.error(f"Unreadable booking payload: {e}")
        return _failure("Invalid booking payload")

    patient = payload.patient
    if not patient or not patient.email or not patient.phone:
        return _failure("Missing required patient information")

    try:
        result = await automation_client.start_booking_job(payload)
    except AutomationError as e:
        return _failure(str(e))
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Booking error: {e}")
        return _failure("An unexpected error occurred")

    slot_id = payload.appointment.slot_id if payload.appointment else None
    logger.info(f"Started booking job {result.job_key} for slot {slot_id}")
    return result.model_dump(by_alias=True, exclude_none=True)
