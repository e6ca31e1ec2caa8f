"""
Workflow action models

An action is the disposition chosen for a processed ticket. Each action type
carries exactly its own parameters; the union is discriminated on ``type`` so
missing or unexpected parameters fail validation.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field, ConfigDict

from helpdesk.models.schemas import Priority


class ActionType(str, Enum):
    """Dispositions the workflow can execute"""
    AUTO_RESOLVE = "auto_resolve"
    AGENT_REVIEW = "agent_review"
    HUMAN_REVIEW = "human_review"
    ESCALATE = "escalate"


class BaseAction(BaseModel):
    """Fields shared by every action"""
    model_config = ConfigDict(extra="forbid")

    confidence: float = Field(0.0, ge=0.0, le=1.0, description="Calibrated confidence at decision time")
    reasoning: List[str] = Field(default_factory=list, description="Human-readable justification")


class AutoResolveAction(BaseAction):
    type: Literal["auto_resolve"] = "auto_resolve"
    response_content: str = Field(..., min_length=1)
    close_ticket: bool = True
    notify_customer: bool = True


class AgentReviewAction(BaseAction):
    type: Literal["agent_review"] = "agent_review"
    queue: str = "ai_review"
    priority: str = "normal"


class HumanReviewAction(BaseAction):
    type: Literal["human_review"] = "human_review"
    queue: str = "human_review"
    priority: Priority = Priority.HIGH


class EscalateAction(BaseAction):
    type: Literal["escalate"] = "escalate"
    escalation_level: str = "senior"
    priority: Priority = Priority.URGENT


Action = Annotated[
    Union[AutoResolveAction, AgentReviewAction, HumanReviewAction, EscalateAction],
    Field(discriminator="type"),
]


class ActionResult(BaseModel):
    """Outcome of an executed action"""
    action: ActionType
    success: bool = False
    auto_resolved: bool = False
    details: Dict[str, Any] = Field(default_factory=dict)
