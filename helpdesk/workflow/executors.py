"""
Action executors - the side-effecting half of the workflow

Each executor writes its target ticket state, appends an audit entry to the
suggestion describing what it did, and returns the details dict that goes into
the ActionResult. Absence of agent capacity is a normal, recorded outcome.
"""
from typing import Any, Dict, Optional

from helpdesk.models.actions import (
    AgentReviewAction,
    AutoResolveAction,
    EscalateAction,
    HumanReviewAction,
)
from helpdesk.models.schemas import (
    AgentSuggestion,
    Priority,
    Resolution,
    SuggestionStatus,
    Ticket,
    TicketStatus,
    utcnow,
)
from helpdesk.utils.logger import get_logger
from helpdesk.workflow.ports import AgentPool, Notifier, SuggestionStore, TicketStore

logger = get_logger(__name__)

AI_AUTO_RESOLVED = "ai_auto_resolved"


class ActionExecutor:
    """Applies workflow actions to tickets and suggestion records."""

    def __init__(
        self,
        tickets: TicketStore,
        suggestions: SuggestionStore,
        agents: AgentPool,
        notifier: Optional[Notifier] = None,
        agent_role: str = "agent",
        agent_limit: int = 5,
    ) -> None:
        self.tickets = tickets
        self.suggestions = suggestions
        self.agents = agents
        self.notifier = notifier
        self.agent_role = agent_role
        self.agent_limit = agent_limit

    async def auto_resolve(
        self,
        action: AutoResolveAction,
        ticket: Ticket,
        suggestion: AgentSuggestion
    ) -> Dict[str, Any]:
        logger.info(f"Auto-resolving ticket {ticket.id}")

        resolved_at = utcnow()
        ticket.status = TicketStatus.RESOLVED
        ticket.resolved_at = resolved_at
        ticket.resolution = Resolution(
            type=AI_AUTO_RESOLVED,
            content=action.response_content,
            resolved_by=None,
            resolved_at=resolved_at,
        )
        ticket.add_history("Auto-resolved by AI", None, {
            "suggestion_id": suggestion.id,
            "trace_id": suggestion.trace_id,
        })
        await self.tickets.save(ticket)

        suggestion.transition_to(SuggestionStatus.AUTO_APPLIED)
        suggestion.add_audit_entry("Auto-resolution applied", None, {
            "response_content": action.response_content,
        })
        await self.suggestions.update(suggestion)

        notification_sent = False
        if action.notify_customer and self.notifier is not None:
            self.notifier.notify(ticket.id, action.response_content)
            notification_sent = True

        return {
            "ticket_status": TicketStatus.RESOLVED.value,
            "response_content": action.response_content,
            "notification_sent": notification_sent,
        }

    async def queue_for_agent_review(
        self,
        action: AgentReviewAction,
        ticket: Ticket,
        suggestion: AgentSuggestion
    ) -> Dict[str, Any]:
        logger.info(f"Queueing ticket {ticket.id} for agent review")

        available = await self.agents.find_available_agents(self.agent_role, self.agent_limit)

        if not available:
            logger.info(f"No agents available for ticket {ticket.id}, leaving it queued")
            await self.suggestions.append_audit_entry(suggestion, "Queued for agent review", None, {
                "queue": action.queue,
                "reason": "no available agents",
            })
            return {
                "assigned_to": None,
                "queue": action.queue,
                "status": "queued",
            }

        # Least loaded first
        agent = available[0]
        ticket.assignee_id = agent.id
        ticket.status = TicketStatus.IN_PROGRESS
        ticket.add_history("Assigned to agent for AI review", None, {"agent_id": agent.id})
        await self.tickets.save(ticket)

        await self.suggestions.append_audit_entry(suggestion, "Assigned to agent for review", agent.id, {
            "agent_name": agent.full_name,
            "queue": action.queue,
        })

        return {
            "assigned_to": agent.id,
            "agent_name": agent.full_name,
            "queue": action.queue,
            "status": "assigned",
        }

    async def queue_for_human_review(
        self,
        action: HumanReviewAction,
        ticket: Ticket,
        suggestion: AgentSuggestion
    ) -> Dict[str, Any]:
        logger.info(f"Queueing ticket {ticket.id} for human review")

        ticket.priority = action.priority
        ticket.status = TicketStatus.TRIAGED
        ticket.add_history("Queued for human review", None, {"priority": action.priority.value})
        await self.tickets.save(ticket)

        await self.suggestions.append_audit_entry(suggestion, "Queued for human review", None, {
            "priority": action.priority.value,
            "reason": "low AI confidence",
        })

        return {
            "queue": action.queue,
            "priority": action.priority.value,
            "status": "queued_for_human_review",
        }

    async def escalate(
        self,
        action: EscalateAction,
        ticket: Ticket,
        suggestion: AgentSuggestion
    ) -> Dict[str, Any]:
        logger.info(f"Escalating ticket {ticket.id}")

        ticket.priority = Priority.URGENT
        ticket.status = TicketStatus.ESCALATED
        ticket.add_history("Escalated", None, {"escalation_level": action.escalation_level})
        await self.tickets.save(ticket)

        await self.suggestions.append_audit_entry(suggestion, "Ticket escalated", None, {
            "escalation_level": action.escalation_level,
            "reason": "very low AI confidence",
        })

        return {
            "escalation_level": action.escalation_level,
            "priority": Priority.URGENT.value,
            "status": TicketStatus.ESCALATED.value,
        }
