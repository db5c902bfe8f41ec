"""
Planner Layer - Request classification and workflow lifecycle

NOT an agent. This is a deterministic layer that:
- Classifies a chat message into one of three intents
- Tracks each command invocation through a fixed state machine

Architecture:
    Chat message
        ↓
    RequestClassifier (deterministic keyword rules)
        ↓
    Intent → command selection (orchestrator)
        ↓
    WorkflowStateMachine (IDLE → ANALYZING → PLANNING → EXECUTING → COMMITTING → DONE)
"""

from .state_machine import (
    WorkflowState,
    TransitionReason,
    WorkflowStateMachine,
    WorkflowContext,
    create_initial_context,
    is_workflow_complete,
    get_workflow_summary
)

from .classifier import (
    RequestClassifier,
    classify,
    is_explicit_new_project
)

__all__ = [
    # State Machine
    "WorkflowState",
    "TransitionReason",
    "WorkflowStateMachine",
    "WorkflowContext",
    "create_initial_context",
    "is_workflow_complete",
    "get_workflow_summary",

    # Classification
    "RequestClassifier",
    "classify",
    "is_explicit_new_project"
]

__version__ = "1.0.0"
