"""
Workflow State Machine - Deterministic command lifecycle

Tracks one command invocation from request to result.

State Flow:
    IDLE → ANALYZING → PLANNING → EXECUTING(step_i)… → COMMITTING → DONE
                 ↘          ↘
                   FAILED     FAILED

Project creation is single-shot:
    IDLE → EXECUTING → DONE | FAILED

Philosophy:
- States are deterministic (not emergent)
- Only analysis or planning failure ends in FAILED for modification workflows
- A failed step is recorded and execution moves on
"""

from enum import Enum
from typing import List, Optional, Dict
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class WorkflowState(Enum):
    """Command workflow states."""
    IDLE = "idle"                 # Not started
    ANALYZING = "analyzing"       # Analyzer call in flight
    PLANNING = "planning"         # Planner call in flight
    EXECUTING = "executing"       # Running plan steps in order
    COMMITTING = "committing"     # Commit (and push) of the change set
    DONE = "done"                 # Result produced
    FAILED = "failed"             # Analysis or planning failed


class TransitionReason(Enum):
    """Reasons for state transitions."""
    # IDLE → ANALYZING
    START_ANALYSIS = "start_analysis"

    # IDLE → EXECUTING
    START_CREATION = "start_creation"

    # ANALYZING → PLANNING
    ANALYSIS_COMPLETE = "analysis_complete"

    # PLANNING → EXECUTING
    PLAN_READY = "plan_ready"

    # EXECUTING → EXECUTING
    STEP_RECORDED = "step_recorded"

    # EXECUTING → COMMITTING
    CHANGES_TO_COMMIT = "changes_to_commit"

    # EXECUTING → DONE
    NOTHING_TO_COMMIT = "nothing_to_commit"
    PROJECT_CREATED = "project_created"
    FALLBACK_COMPLETED = "fallback_completed"

    # COMMITTING → DONE
    COMMIT_RECORDED = "commit_recorded"

    # * → FAILED
    ANALYSIS_FAILED = "analysis_failed"
    PLAN_FAILED = "plan_failed"
    FALLBACK_FAILED = "fallback_failed"


@dataclass
class WorkflowContext:
    """Context carried through one workflow invocation."""
    request: str
    current_state: WorkflowState = WorkflowState.IDLE

    # Execution counters
    current_step: Optional[int] = None
    success_count: int = 0
    total_steps: int = 0

    # Metadata
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # History
    state_history: List[Dict] = field(default_factory=list)


class WorkflowStateMachine:
    """
    State machine for command workflows.

    Enforces valid transitions and records them in the context history.
    """

    VALID_TRANSITIONS = {
        WorkflowState.IDLE: {
            WorkflowState.ANALYZING,  # Modification workflows
            WorkflowState.EXECUTING,  # Single-shot project creation
            WorkflowState.FAILED
        },
        WorkflowState.ANALYZING: {
            WorkflowState.PLANNING,
            WorkflowState.FAILED
        },
        WorkflowState.PLANNING: {
            WorkflowState.EXECUTING,
            WorkflowState.FAILED
        },
        WorkflowState.EXECUTING: {
            WorkflowState.EXECUTING,  # Next step
            WorkflowState.COMMITTING,  # At least one step succeeded
            WorkflowState.DONE,
            WorkflowState.FAILED  # Project creation: AI call and fallback both failed
        },
        WorkflowState.COMMITTING: {
            WorkflowState.DONE  # Commit/push failures never fail the workflow
        },
        WorkflowState.DONE: set(),  # Terminal state
        WorkflowState.FAILED: set()  # Terminal state
    }

    def can_transition(
        self,
        from_state: WorkflowState,
        to_state: WorkflowState
    ) -> bool:
        """
        Check if transition is valid.

        Args:
            from_state: Current state
            to_state: Target state

        Returns:
            True if transition is allowed
        """
        return to_state in self.VALID_TRANSITIONS.get(from_state, set())

    def transition(
        self,
        context: WorkflowContext,
        to_state: WorkflowState,
        reason: TransitionReason,
        step: Optional[int] = None
    ) -> WorkflowContext:
        """
        Transition to new state.

        Args:
            context: Current context
            to_state: Target state
            reason: Reason for transition
            step: Plan ordinal being executed, for EXECUTING transitions

        Returns:
            Updated context

        Raises:
            ValueError: If transition is invalid
        """
        if not self.can_transition(context.current_state, to_state):
            raise ValueError(
                f"Invalid transition: {context.current_state.value} → {to_state.value}"
            )

        now = datetime.now(timezone.utc)
        entry = {
            "from": context.current_state.value,
            "to": to_state.value,
            "reason": reason.value,
            "timestamp": now.isoformat()
        }
        if step is not None:
            entry["step"] = step
        context.state_history.append(entry)

        logger.debug(
            "workflow transition %s -> %s reason=%s",
            context.current_state.value, to_state.value, reason.value
        )

        context.current_state = to_state
        context.current_step = step if to_state == WorkflowState.EXECUTING else None
        context.updated_at = now

        return context

    def is_terminal_state(self, state: WorkflowState) -> bool:
        """Check if state is terminal (no outgoing transitions)."""
        return len(self.VALID_TRANSITIONS.get(state, set())) == 0


# Helper functions

def create_initial_context(request: str) -> WorkflowContext:
    """Create initial context for a workflow invocation."""
    return WorkflowContext(request=request)


def is_workflow_complete(context: WorkflowContext) -> bool:
    """Check if workflow is in terminal state."""
    return context.current_state in {
        WorkflowState.DONE,
        WorkflowState.FAILED
    }


def get_workflow_summary(context: WorkflowContext) -> Dict:
    """
    Get summary of workflow progress.

    Returns:
        dict with current state, history and counters
    """
    return {
        "current_state": context.current_state.value,
        "request": context.request,
        "state_history": list(context.state_history),
        "success_count": context.success_count,
        "total_steps": context.total_steps,
        "is_terminal": is_workflow_complete(context)
    }
