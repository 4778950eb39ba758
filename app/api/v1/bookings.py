from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...services.booking_service import BookingService
from ...services.workflow_client import WorkflowClient, get_workflow_client
from ...schemas.booking import BookingRequest, BookingConfirmation

router = APIRouter(prefix="/bookings", tags=["Bookings"])

@router.post("", response_model=BookingConfirmation)
async def create_booking(
    booking_request: BookingRequest,
    db: Session = Depends(get_db),
    workflow_client: WorkflowClient = Depends(get_workflow_client)
):
    """Confirm a booking for the selected slot and patient details."""
    booking_service = BookingService(db, workflow_client)
    return await booking_service.create_booking(booking_request)
