"""
Auto-resolution workflow building blocks: registry, decision policy,
action executors and the LangGraph pipeline.
"""
from helpdesk.workflow.executors import ActionExecutor
from helpdesk.workflow.graph import PipelineState, action_condition, build_graph, compile_pipeline
from helpdesk.workflow.policy import determine_next_action
from helpdesk.workflow.registry import ProcessingRegistry

__all__ = [
    "ActionExecutor",
    "PipelineState",
    "action_condition",
    "build_graph",
    "compile_pipeline",
    "determine_next_action",
    "ProcessingRegistry",
]
