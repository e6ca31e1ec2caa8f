"""
Pipeline run bookkeeping models
"""
import time
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field, PrivateAttr

from helpdesk.models.actions import Action, ActionResult
from helpdesk.models.schemas import AgentSuggestion, utcnow


class PipelineStep(BaseModel):
    """Timing and outcome of one pipeline step"""
    name: str
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    duration_ms: Optional[int] = None
    success: Optional[bool] = None
    error: Optional[str] = None

    _clock: float = PrivateAttr(default_factory=time.monotonic)

    def _close(self, success: bool, error: Optional[str] = None) -> None:
        self.ended_at = utcnow()
        self.duration_ms = int((time.monotonic() - self._clock) * 1000)
        self.success = success
        self.error = error

    def succeed(self) -> None:
        self._close(True)

    def fail(self, error: Exception) -> None:
        self._close(False, str(error))


class PipelineResult(BaseModel):
    """
    Summary of one auto-resolution pipeline run.

    Returned to every caller that asked for the ticket while the run was in
    flight, so it is shared and must be treated as read-only once finished.
    """
    ticket_id: str
    trace_id: str
    priority: str = "normal"
    suggestion: Optional[AgentSuggestion] = None
    steps: List[PipelineStep] = Field(default_factory=list)
    action: Optional[Action] = None
    action_result: Optional[ActionResult] = None
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    total_time_ms: Optional[int] = None
    success: bool = False
    error: Optional[str] = None
    error_kind: Optional[str] = None

    _clock: float = PrivateAttr(default_factory=time.monotonic)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self._clock) * 1000)

    @property
    def auto_resolved(self) -> bool:
        return bool(self.action_result and self.action_result.auto_resolved)

    @property
    def current_step(self) -> Optional[PipelineStep]:
        return self.steps[-1] if self.steps else None

    def start_step(self, name: str) -> PipelineStep:
        step = PipelineStep(name=name)
        self.steps.append(step)
        return step

    def step_timings(self) -> List[dict]:
        return [
            {
                "step": step.name,
                "duration_ms": step.duration_ms,
                "success": step.success,
                "error": step.error,
            }
            for step in self.steps
        ]

    def finish(self, error: Optional[Exception] = None) -> None:
        self.ended_at = utcnow()
        self.total_time_ms = self.elapsed_ms
        self.success = error is None
        if error is not None:
            self.error = str(error)
            self.error_kind = getattr(error, "kind", type(error).__name__)
