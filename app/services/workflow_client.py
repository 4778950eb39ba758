"""
Clients for the two outbound hops of a booking.

``WorkflowClient`` is used by the booking orchestrator to call the booking
function. ``AutomationClient`` is used by the booking function to start the
RPA job that actually books the appointment.
"""
from typing import Optional
import asyncio
import logging

import httpx

from ..core.config import settings
from ..core.exceptions import WorkflowDispatchError, WorkflowTimeoutError
from ..schemas.workflow import WorkflowBookingPayload, WorkflowResult

logger = logging.getLogger(__name__)

def _error_message(response: httpx.Response, *keys: str) -> Optional[str]:
    """Pull the first non-empty error field out of a JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in keys:
        if body.get(key):
            return str(body[key])
    return None

class WorkflowClient:
    """Dispatch a booking payload to the booking function."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url or settings.BOOKING_FUNCTION_URL
        self.api_key = api_key if api_key is not None else settings.BOOKING_FUNCTION_KEY
        self.timeout = timeout if timeout is not None else settings.WORKFLOW_TIMEOUT_SECONDS
        self._transport = transport

    async def dispatch(self, payload: WorkflowBookingPayload) -> WorkflowResult:
        """
        Send the booking to the workflow.

        Raises WorkflowTimeoutError when no answer arrives within the timeout
        and WorkflowDispatchError for any other failure, including a 2xx
        response that reports ``success: false``.
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport
            ) as client:
                # httpx timeouts apply per phase; this bounds the whole call
                response = await asyncio.wait_for(
                    client.post(
                        self.url,
                        json=payload.model_dump(by_alias=True, exclude_unset=True),
                        headers=headers
                    ),
                    timeout=self.timeout
                )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.error(f"Booking workflow timed out after {self.timeout}s: {e}")
            raise WorkflowTimeoutError()
        except httpx.RequestError as e:
            logger.error(f"Booking workflow request failed: {e}")
            raise WorkflowDispatchError("Failed to process booking request. Please try again.")

        if not response.is_success:
            message = _error_message(response, "error", "message")
            logger.error(f"Booking workflow returned {response.status_code}: {message}")
            raise WorkflowDispatchError(message or f"Booking failed: {response.reason_phrase}")

        try:
            result = WorkflowResult.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Booking workflow returned an unreadable body: {e}")
            raise WorkflowDispatchError("Failed to process booking request")

        if not result.success:
            logger.error(f"Booking workflow reported failure: {result.error}")
            raise WorkflowDispatchError(result.error or "Failed to process booking request")

        return result

class AutomationError(Exception):
    """The RPA process could not start the booking job."""

class AutomationClient:
    """Start a booking job on the RPA process endpoint."""

    def __init__(
        self,
        url: Optional[str] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url or settings.WORKFLOW_PROCESS_URL
        self.access_token = access_token if access_token is not None else settings.WORKFLOW_ACCESS_TOKEN
        self._transport = transport

    async def start_booking_job(self, payload: WorkflowBookingPayload) -> WorkflowResult:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(settings.WORKFLOW_TIMEOUT_SECONDS),
            transport=self._transport
        ) as client:
            response = await client.post(
                self.url,
                json=payload.model_dump(by_alias=True, exclude_unset=True),
                headers=headers
            )

        if not response.is_success:
            message = _error_message(response, "message")
            logger.error(f"RPA process error: {response.status_code} {message}")
            raise AutomationError(message or f"Booking failed: {response.reason_phrase}")

        job = response.json()
        if not isinstance(job, dict):
            logger.error(f"RPA process returned a non-object body: {job!r}")
            raise AutomationError("Unexpected response from RPA process")

        return WorkflowResult(
            success=True,
            process_id=job.get("id"),
            job_key=job.get("key"),
            state=job.get("state"),
            creation_time=job.get("creationTime"),
            organization_unit_id=job.get("organizationUnitId")
        )

# Dependencies
def get_workflow_client() -> WorkflowClient:
    return WorkflowClient()

def get_automation_client() -> AutomationClient:
    return AutomationClient()
