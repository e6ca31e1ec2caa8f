"""
LangGraph pipeline - auto-resolution workflow graph

Flow:
1. load_ticket → create_suggestion → submit_classification
2. submit_classification → wait_for_completion → update_suggestion
3. update_suggestion → determine_action
4. determine_action → (auto_resolve | agent_review | human_review | escalate)
5. executor → record_audit → END

Nodes raise on failure; the exception leaves ``ainvoke`` and the caller
records it against the suggestion.
"""
from typing import Awaitable, Callable, Literal, Protocol, TypedDict

from langgraph.graph import StateGraph, END

from helpdesk.models.actions import Action, ActionResult, ActionType
from helpdesk.models.pipeline import PipelineResult
from helpdesk.models.schemas import AgentSuggestion, JobHandle, ProcessingResult, Ticket
from helpdesk.utils.logger import get_logger

logger = get_logger(__name__)


class PipelineState(TypedDict, total=False):
    """State carried between pipeline nodes"""
    pipeline: PipelineResult
    ticket: Ticket
    suggestion: AgentSuggestion
    job: JobHandle
    result: ProcessingResult
    action: Action
    action_result: ActionResult


Node = Callable[[PipelineState], Awaitable[dict]]


class PipelineNodes(Protocol):
    load_ticket: Node
    create_suggestion: Node
    submit_classification: Node
    wait_for_completion: Node
    update_suggestion: Node
    determine_action: Node
    auto_resolve: Node
    agent_review: Node
    human_review: Node
    escalate: Node
    record_audit: Node


def action_condition(state: PipelineState) -> Literal["auto_resolve", "agent_review", "human_review", "escalate"]:
    """
    Route to the executor for the chosen action
    """
    action = state.get("action")
    next_node = action.type if action is not None else ActionType.HUMAN_REVIEW.value
    logger.debug(f"Routing to: {next_node}")
    return next_node


EXECUTOR_NODES = [action_type.value for action_type in ActionType]


def build_graph(nodes: PipelineNodes) -> StateGraph:
    """
    Build the auto-resolution workflow graph

    Args:
        nodes: Object exposing one coroutine per node name

    Returns:
        Uncompiled StateGraph
    """
    graph = StateGraph(PipelineState)

    linear = [
        "load_ticket",
        "create_suggestion",
        "submit_classification",
        "wait_for_completion",
        "update_suggestion",
        "determine_action",
    ]
    for name in linear + EXECUTOR_NODES + ["record_audit"]:
        graph.add_node(name, getattr(nodes, name))

    graph.set_entry_point("load_ticket")

    for source, target in zip(linear, linear[1:]):
        graph.add_edge(source, target)

    # determine_action → (auto_resolve | agent_review | human_review | escalate)
    graph.add_conditional_edges(
        "determine_action",
        action_condition,
        {name: name for name in EXECUTOR_NODES}
    )

    for name in EXECUTOR_NODES:
        graph.add_edge(name, "record_audit")

    graph.add_edge("record_audit", END)

    logger.info("Auto-resolution graph built successfully")
    return graph


def compile_pipeline(nodes: PipelineNodes):
    """
    Compile the pipeline graph

    Returns:
        Compiled LangGraph workflow
    """
    compiled = build_graph(nodes).compile()
    logger.info("Auto-resolution pipeline compiled")
    return compiled
