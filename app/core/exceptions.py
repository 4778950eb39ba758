from fastapi import HTTPException, status

# Booking flow exceptions. The detail is shown to the patient as-is.

class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class SlotUnavailableError(HTTPException):
    def __init__(self, detail: str = "This time slot is no longer available. Please choose another time."):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class DuplicateBookingError(HTTPException):
    def __init__(self, window_days: int = 3):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=(
                f"You already have a confirmed booking within {window_days} days. "
                "Please contact us if you need to book another appointment."
            ),
        )

class DataStoreError(HTTPException):
    """A read or write against the hosted database failed."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

class WorkflowDispatchError(HTTPException):
    """The booking workflow rejected the request or could not be reached."""

    def __init__(self, detail: str = "Failed to process booking request"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)

class WorkflowTimeoutError(HTTPException):
    def __init__(self, detail: str = "Booking request timed out. Please try again."):
        super().__init__(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=detail)
