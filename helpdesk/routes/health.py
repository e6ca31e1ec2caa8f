"""
Health check endpoints

- GET /api/health - Basic liveness check
- GET /api/health/workflow - Auto-resolution workflow status
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from helpdesk.dependencies import get_workflow
from helpdesk.services.auto_resolution import AutoResolutionWorkflow
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

APP_VERSION = "1.0.0"

# Application start time for uptime calculation
APP_START_TIME = time.time()


class HealthResponse(BaseModel):
    """Basic health check response"""
    status: str = Field(..., description="Overall status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")


class WorkflowHealth(BaseModel):
    """Auto-resolution workflow health"""
    status: str
    initialized: bool
    in_flight: int
    max_wait_seconds: float
    poll_interval_seconds: float


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def basic_health_check() -> HealthResponse:
    """
    Always returns 200 OK with current status.
    Does not check external dependencies.
    """
    uptime = time.time() - APP_START_TIME

    return HealthResponse(
        status="healthy",
        version=APP_VERSION,
        uptime_seconds=round(uptime, 2)
    )


@router.get(
    "/workflow",
    response_model=WorkflowHealth,
    summary="Workflow health check",
)
async def workflow_health_check(
    workflow: AutoResolutionWorkflow = Depends(get_workflow)
) -> Dict[str, Any]:
    health = workflow.get_health()
    if health["status"] != "healthy":
        logger.warning(f"Workflow reports {health['status']}")
    return health
