"""
Auto-Resolution Workflow

Drives one ticket through AI classification and a confidence-gated
disposition:

    load ticket → create suggestion → submit → wait → update suggestion
    → determine action → execute action → record audit

Every step is timed on the PipelineResult. Any failure after the suggestion
exists is recorded on it (error entry, "Processing failed" audit entry,
status `failed` where allowed) and re-raised. At most one run per ticket is
in flight; concurrent callers share its outcome.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import uuid4

from helpdesk.config import Settings, get_settings
from helpdesk.exceptions import (
    ActionExecutionError,
    CapabilityFailureError,
    ProcessingTimeoutError,
    TicketNotFoundError,
    WorkflowClosedError,
)
from helpdesk.models.actions import ActionResult, ActionType
from helpdesk.models.pipeline import PipelineResult
from helpdesk.models.schemas import (
    AgentSuggestion,
    JobHandle,
    JobState,
    ProcessingResult,
    utcnow,
)
from helpdesk.utils.logger import get_logger
from helpdesk.workflow.executors import ActionExecutor
from helpdesk.workflow.graph import PipelineState, compile_pipeline
from helpdesk.workflow.policy import determine_next_action
from helpdesk.workflow.ports import (
    AgentPool,
    AuditSink,
    ClassificationCapability,
    Notifier,
    SuggestionStore,
    TicketStore,
)
from helpdesk.workflow.registry import ProcessingRegistry

logger = get_logger(__name__)

EXECUTE_ACTION = "execute_action"


class AutoResolutionWorkflow:
    """
    Confidence-gated auto-resolution of helpdesk tickets.

    Collaborators are injected; the FastAPI app wires the Supabase
    repositories and HTTP clients, tests wire in-memory fakes.
    """

    def __init__(
        self,
        tickets: TicketStore,
        suggestions: SuggestionStore,
        agents: AgentPool,
        capability: ClassificationCapability,
        notifier: Optional[Notifier] = None,
        audit_sink: Optional[AuditSink] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.tickets = tickets
        self.suggestions = suggestions
        self.capability = capability
        self.audit_sink = audit_sink
        self.notifier = notifier
        self.executor = ActionExecutor(
            tickets,
            suggestions,
            agents,
            notifier=notifier,
            agent_role=self.settings.agent_pool_role,
            agent_limit=self.settings.agent_pool_limit,
        )

        self.poll_interval = self.settings.workflow_poll_interval_seconds
        self.max_wait = self.settings.workflow_max_wait_seconds
        self.progress_audit_every = max(1, self.settings.workflow_progress_audit_every)

        self.registry = ProcessingRegistry()
        self._closed = False
        self._graph = compile_pipeline(self)
        logger.info("Auto-resolution workflow initialized")

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    async def process_ticket(self, ticket_id: str, priority: str = "normal") -> PipelineResult:
        """
        Process a ticket through the auto-resolution pipeline.

        Args:
            ticket_id: Ticket to process
            priority: Queue priority hint (low | normal | high | urgent)

        Returns:
            PipelineResult of the run (shared with concurrent callers)

        Raises:
            TicketNotFoundError: Ticket does not exist
            ProcessingTimeoutError: Capability did not finish in time
            CapabilityFailureError: Capability reported failure
            ActionExecutionError: The chosen action failed
            WorkflowClosedError: Workflow has been shut down
        """
        if self._closed:
            raise WorkflowClosedError("Auto-resolution workflow is shut down", {"ticket_id": ticket_id})

        return await self.registry.submit(
            ticket_id,
            lambda: self._execute_pipeline(ticket_id, priority),
        )

    async def _execute_pipeline(self, ticket_id: str, priority: str) -> PipelineResult:
        pipeline = PipelineResult(ticket_id=ticket_id, trace_id=str(uuid4()), priority=priority)
        logger.info(f"[{pipeline.trace_id}] Starting auto-resolution for ticket {ticket_id}")

        try:
            await self._graph.ainvoke({"pipeline": pipeline})
        except Exception as e:
            pipeline.finish(e)
            await self._record_failure(pipeline, e)
            raise

        pipeline.finish()
        logger.info(
            f"[{pipeline.trace_id}] Completed ticket {ticket_id} in {pipeline.total_time_ms}ms "
            f"(action={pipeline.action.type if pipeline.action else None}, "
            f"auto_resolved={pipeline.auto_resolved})"
        )
        return pipeline

    async def _record_failure(self, pipeline: PipelineResult, error: Exception) -> None:
        step = pipeline.current_step.name if pipeline.current_step else "unknown"
        logger.error(
            f"[{pipeline.trace_id}] Auto-resolution failed for ticket {pipeline.ticket_id} "
            f"at step {step}: {error}",
            exc_info=error,
        )

        suggestion = pipeline.suggestion
        if suggestion is None:
            return

        suggestion.record_error(step, error)
        try:
            await self.suggestions.update(suggestion)
        except Exception as store_error:
            # The original failure is re-raised by the caller
            logger.error(
                f"[{pipeline.trace_id}] Could not persist failure on suggestion {suggestion.id}: {store_error}",
                exc_info=store_error,
            )

    # ------------------------------------------------------------------
    # Step bookkeeping
    # ------------------------------------------------------------------
    async def _step(
        self,
        state: PipelineState,
        name: str,
        body: Callable[[], Awaitable[Dict[str, Any]]]
    ) -> Dict[str, Any]:
        pipeline = state["pipeline"]
        step = pipeline.start_step(name)
        logger.debug(f"[{pipeline.trace_id}] Step {name} started")
        try:
            update = await body()
        except Exception as e:
            step.fail(e)
            raise
        step.succeed()
        logger.debug(f"[{pipeline.trace_id}] Step {name} finished in {step.duration_ms}ms")
        return {"pipeline": pipeline, **update}

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------
    async def load_ticket(self, state: PipelineState) -> Dict[str, Any]:
        async def body():
            ticket_id = state["pipeline"].ticket_id
            ticket = await self.tickets.get_by_id(ticket_id)
            if ticket is None:
                raise TicketNotFoundError(ticket_id)
            return {"ticket": ticket}

        return await self._step(state, "load_ticket", body)

    async def create_suggestion(self, state: PipelineState) -> Dict[str, Any]:
        pipeline = state["pipeline"]

        async def body():
            record = AgentSuggestion.for_ticket(state["ticket"], pipeline.trace_id)
            record.add_audit_entry("Processing started", None, {
                "trace_id": pipeline.trace_id,
                "priority": pipeline.priority,
            })
            suggestion = await self.suggestions.create(record)
            pipeline.suggestion = suggestion
            return {"suggestion": suggestion}

        return await self._step(state, "create_suggestion", body)

    async def submit_classification(self, state: PipelineState) -> Dict[str, Any]:
        pipeline = state["pipeline"]

        async def body():
            job = await self.capability.submit(state["ticket"], pipeline.priority)
            await self.suggestions.append_audit_entry(
                state["suggestion"], "Submitted for AI processing", None, {
                    "job_id": job.id,
                    "queue": job.queue,
                }
            )
            return {"job": job}

        return await self._step(state, "submit_classification", body)

    async def wait_for_completion(self, state: PipelineState) -> Dict[str, Any]:
        async def body():
            result = await self._wait_for_completion(state["job"], state["suggestion"])
            return {"result": result}

        return await self._step(state, "wait_for_completion", body)

    async def update_suggestion(self, state: PipelineState) -> Dict[str, Any]:
        async def body():
            suggestion = state["suggestion"]
            result = state["result"]
            suggestion.apply_results(result)
            suggestion.add_audit_entry("AI processing completed", None, {
                "confidence": result.confidence.effective,
                "recommendation": result.confidence.recommendation,
                "auto_resolve": result.auto_resolve,
            })
            await self.suggestions.update(suggestion)
            return {}

        return await self._step(state, "update_suggestion", body)

    async def determine_action(self, state: PipelineState) -> Dict[str, Any]:
        pipeline = state["pipeline"]

        async def body():
            suggestion = state["suggestion"]
            action = determine_next_action(suggestion.confidence, suggestion.suggested_response)
            pipeline.action = action
            await self.suggestions.append_audit_entry(
                suggestion, f"Action determined: {action.type}", None, {
                    "confidence": action.confidence,
                    "reasoning": action.reasoning,
                }
            )
            logger.info(f"[{pipeline.trace_id}] Action determined: {action.type}")
            return {"action": action}

        return await self._step(state, "determine_action", body)

    async def auto_resolve(self, state: PipelineState) -> Dict[str, Any]:
        return await self._execute(state, self.executor.auto_resolve)

    async def agent_review(self, state: PipelineState) -> Dict[str, Any]:
        return await self._execute(state, self.executor.queue_for_agent_review)

    async def human_review(self, state: PipelineState) -> Dict[str, Any]:
        return await self._execute(state, self.executor.queue_for_human_review)

    async def escalate(self, state: PipelineState) -> Dict[str, Any]:
        return await self._execute(state, self.executor.escalate)

    async def _execute(self, state: PipelineState, executor: Callable) -> Dict[str, Any]:
        pipeline = state["pipeline"]
        action = state["action"]

        async def body():
            suggestion = state["suggestion"]
            try:
                details = await executor(action, state["ticket"], suggestion)
            except Exception as e:
                logger.error(
                    f"[{pipeline.trace_id}] Executing {action.type} failed for ticket "
                    f"{pipeline.ticket_id} (suggestion {suggestion.id}): {e}",
                    exc_info=e,
                )
                raise ActionExecutionError(
                    f"Failed to execute {action.type}: {e}",
                    {"action": action.type, "ticket_id": pipeline.ticket_id},
                ) from e

            action_result = ActionResult(
                action=ActionType(action.type),
                success=True,
                auto_resolved=action.type == ActionType.AUTO_RESOLVE.value,
                details=details,
            )
            pipeline.action_result = action_result
            await self.suggestions.append_audit_entry(
                suggestion, f"Action executed: {action.type}", None, details
            )
            return {"action_result": action_result}

        return await self._step(state, EXECUTE_ACTION, body)

    async def record_audit(self, state: PipelineState) -> Dict[str, Any]:
        pipeline = state["pipeline"]

        async def body():
            suggestion = state["suggestion"]
            entry = {
                "action": "auto_resolution_pipeline",
                "ticket_id": pipeline.ticket_id,
                "trace_id": pipeline.trace_id,
                "suggestion_id": suggestion.id,
                "total_time_ms": pipeline.elapsed_ms,
                "steps": pipeline.step_timings(),
                "action_type": pipeline.action.type if pipeline.action else None,
                "auto_resolved": pipeline.auto_resolved,
                "success": True,
                "timestamp": utcnow().isoformat(),
            }
            logger.info(f"[{pipeline.trace_id}] Pipeline audit", extra={"audit": entry})
            if self.audit_sink is not None:
                await self.audit_sink.record(entry)

            await self.suggestions.append_audit_entry(suggestion, "Pipeline completed", None, {
                "total_time_ms": entry["total_time_ms"],
                "auto_resolved": entry["auto_resolved"],
            })
            return {}

        return await self._step(state, "record_audit", body)

    # ------------------------------------------------------------------
    # Waiting
    # ------------------------------------------------------------------
    async def _wait_for_completion(self, job: JobHandle, suggestion: AgentSuggestion) -> ProcessingResult:
        """
        Poll the capability until the job finishes.

        Raises:
            CapabilityFailureError: Job reported failed
            ProcessingTimeoutError: No terminal state within max_wait
        """
        try:
            return await asyncio.wait_for(
                self._poll_until_done(job, suggestion),
                timeout=self.max_wait,
            )
        except asyncio.TimeoutError:
            raise ProcessingTimeoutError(
                f"AI processing timed out after {self.max_wait}s",
                {"job_id": job.id, "max_wait_seconds": self.max_wait},
            ) from None

    async def _poll_until_done(self, job: JobHandle, suggestion: AgentSuggestion) -> ProcessingResult:
        started = time.monotonic()
        polls = 0

        while True:
            status = await self.capability.poll_status(job.queue, job.id)

            if status.state == JobState.COMPLETED:
                if status.result is None:
                    raise CapabilityFailureError(
                        "AI processing completed without a result", {"job_id": job.id}
                    )
                return status.result

            if status.state == JobState.FAILED:
                raise CapabilityFailureError(
                    f"AI processing failed: {status.failure_reason}",
                    {"job_id": job.id, "reason": status.failure_reason},
                )

            polls += 1
            if polls % self.progress_audit_every == 0:
                append = asyncio.ensure_future(
                    self.suggestions.append_audit_entry(suggestion, "Processing in progress", None, {
                        "job_id": job.id,
                        "polls": polls,
                        "elapsed_seconds": round(time.monotonic() - started, 3),
                    })
                )
                try:
                    await asyncio.shield(append)
                except asyncio.CancelledError:
                    # Let the trail write land before the failure is recorded
                    await append
                    raise

            await asyncio.sleep(self.poll_interval)

    # ------------------------------------------------------------------
    # Queries & lifecycle
    # ------------------------------------------------------------------
    async def get_processing_status(self, ticket_id: str) -> Dict[str, Any]:
        """
        Latest processing attempt for a ticket.

        Returns:
            {"status": "not_processed"} when the ticket was never processed
        """
        suggestion = await self.suggestions.get_latest_for_ticket(ticket_id)
        if suggestion is None:
            return {"status": "not_processed"}

        confidence = suggestion.confidence
        return {
            "status": suggestion.status.value,
            "confidence": confidence.effective if confidence else None,
            "recommendation": confidence.recommendation if confidence else None,
            "auto_resolve": suggestion.auto_resolve,
            "created_at": suggestion.created_at.isoformat(),
            "trace_id": suggestion.trace_id,
            "in_flight": self.registry.is_processing(ticket_id),
        }

    def get_health(self) -> Dict[str, Any]:
        return {
            "status": "closed" if self._closed else "healthy",
            "initialized": not self._closed,
            "in_flight": self.registry.in_flight,
            "max_wait_seconds": self.max_wait,
            "poll_interval_seconds": self.poll_interval,
        }

    async def shutdown(self) -> None:
        """Refuse new work and let in-flight runs and notifications finish before closing"""
        if self._closed:
            return
        self._closed = True
        logger.info("Shutting down auto-resolution workflow")

        await self.registry.drain()
        if self.notifier is not None:
            await self.notifier.wait_pending()

        aclose = getattr(self.capability, "aclose", None)
        if aclose is not None:
            await aclose()
        logger.info("Auto-resolution workflow shut down")
