"""
Classification Capability Client

HTTP client for the external AI service that classifies tickets, searches the
knowledge base and drafts responses. Work is submitted as a queued job and
polled for completion.

Endpoints:
- POST {base}/queues/{queue}/jobs           submit a ticket
- GET  {base}/queues/{queue}/jobs/{job_id}  poll job state
"""
import httpx
from typing import Dict, Any, Optional
from helpdesk.config import get_settings
from helpdesk.models.schemas import (
    JobHandle,
    JobState,
    JobStatus,
    ProcessingResult,
    Ticket,
)
from helpdesk.services.confidence import ConfidenceEngine
from helpdesk.utils.logger import get_logger
import asyncio

settings = get_settings()
logger = get_logger(__name__)

# Queue priority: lower runs first
PRIORITY_RANK = {"urgent": 1, "high": 2}
DEFAULT_PRIORITY_RANK = 3

# Capability states that mean "not finished yet"
PENDING_STATES = {"pending", "waiting", "active", "delayed", "paused", "waiting-children"}


class ClassificationClient:
    """
    Classification service integration with retry logic and error handling
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        queue_name: Optional[str] = None,
        confidence_engine: Optional[ConfidenceEngine] = None
    ):
        self.base_url = (base_url or settings.classification_service_url).rstrip("/")
        self.queue_name = queue_name or settings.classification_queue
        self.api_key = settings.classification_api_key
        self.headers = {
            "Content-Type": "application/json"
        }
        if self.api_key:
            self.headers["Authorization"] = f"Bearer {self.api_key}"
        self.timeout = settings.classification_timeout
        self.max_retries = settings.classification_max_retries
        self.confidence_engine = confidence_engine
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        """Refuse further requests. Connections are per-request, so nothing else is held."""
        self._closed = True
        logger.info("Classification client closed")

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Make HTTP request with retry logic

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint
            **kwargs: Additional arguments for httpx

        Returns:
            Response JSON

        Raises:
            httpx.HTTPStatusError: On HTTP errors after retries
        """
        if self._closed:
            raise RuntimeError("Classification client is closed")

        url = f"{self.base_url}/{endpoint}"

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(
                        method=method,
                        url=url,
                        headers=self.headers,
                        **kwargs
                    )
                    response.raise_for_status()
                    return response.json()

            except httpx.HTTPStatusError as e:
                if e.response.status_code in [429, 500, 502, 503, 504]:
                    # Retry on rate limit or server errors
                    if attempt < self.max_retries - 1:
                        wait_time = 2 ** attempt  # Exponential backoff
                        logger.warning(
                            f"Request failed (attempt {attempt + 1}/{self.max_retries}), "
                            f"retrying in {wait_time}s: {e}"
                        )
                        await asyncio.sleep(wait_time)
                        continue
                raise
            except Exception as e:
                logger.error(f"Request failed: {e}")
                raise

    async def submit(self, ticket: Ticket, priority_hint: str = "normal") -> JobHandle:
        """
        Queue a ticket for AI processing.

        Args:
            ticket: Ticket to classify
            priority_hint: low | normal | high | urgent

        Returns:
            Handle for polling the job
        """
        payload = {
            "data": {
                "id": ticket.id,
                "subject": ticket.subject,
                "description": ticket.description,
                "category": ticket.category,
                "priority": ticket.priority.value,
                "attachments": ticket.attachments,
            },
            "options": {
                "priority": PRIORITY_RANK.get(priority_hint, DEFAULT_PRIORITY_RANK),
            },
        }

        body = await self._make_request("POST", f"queues/{self.queue_name}/jobs", json=payload)
        job_id = body.get("id")
        if job_id is None:
            raise ValueError("Classification service returned no job id")

        logger.info(f"Queued ticket {ticket.id} as job {job_id} on {self.queue_name}")
        return JobHandle(id=str(job_id), queue=self.queue_name)

    async def poll_status(self, queue_name: str, job_id: str) -> JobStatus:
        """
        Fetch the state of a job.

        A job the service does not know (yet) is reported as pending.
        """
        try:
            body = await self._make_request("GET", f"queues/{queue_name}/jobs/{job_id}")
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return JobStatus(id=job_id, state=JobState.PENDING)
            raise

        return self._parse_status(job_id, body or {})

    def _parse_status(self, job_id: str, body: Dict[str, Any]) -> JobStatus:
        state = str(body.get("state", "pending")).lower()

        if state == JobState.COMPLETED.value:
            raw_result = body.get("returnvalue") or body.get("result") or {}
            result = ProcessingResult.model_validate(raw_result)
            if self.confidence_engine is not None:
                result.confidence = self.confidence_engine.assess(
                    result.confidence, result.classification
                )
            return JobStatus(id=job_id, state=JobState.COMPLETED, result=result)

        if state == JobState.FAILED.value:
            return JobStatus(
                id=job_id,
                state=JobState.FAILED,
                failure_reason=body.get("failedReason") or body.get("failure_reason") or "unknown error",
            )

        if state not in PENDING_STATES:
            logger.warning(f"Unknown job state '{state}' for job {job_id}, treating as pending")
        return JobStatus(id=job_id, state=JobState.PENDING)
