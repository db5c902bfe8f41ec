"""
Command Layer - One command per intent

A command receives a CommandContext (message sink + liveness) and its own
parameters, and returns a CommandResult. It never touches session state;
the orchestrator applies state transitions from the result.

Modification workflows share one pipeline:
    ANALYZING → PLANNING → (validate) → EXECUTING(step_i)… → COMMITTING → DONE

Philosophy:
- Steps run strictly in plan order, one at a time
- A failed step is logged and counted, never fatal
- Commit and push are best effort
- Only analysis or planning failure produces success=False
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, List, Optional

from planner import (
    TransitionReason,
    WorkflowContext,
    WorkflowState,
    WorkflowStateMachine,
    create_initial_context,
)
from protocol import (
    AnalysisResponse,
    CommandResult,
    MessageRole,
    OutcomeKind,
    PlanResponse,
    ProjectAnalysis,
    Repository,
    StepOutcome,
    VcsResponse,
    WorkflowStep,
)
from runtime.collaborators import Analyzer, Planner, RepositoryContext, VersionControlSink
from runtime.context import CommandContext
from runtime.tool_registry import PlanValidationError, ToolRegistry

logger = logging.getLogger(__name__)

DISCARDED_MESSAGE = "Command discarded: session closed"


class BaseCommand(ABC):
    """Base class for chat commands."""

    def __init__(self, context: CommandContext) -> None:
        self.context = context

    @abstractmethod
    async def execute(self, params: Any) -> CommandResult:
        ...

    def emit(
        self,
        role: MessageRole,
        content: str,
        reasoning: Optional[str] = None,
        log: Optional[List[StepOutcome]] = None,
    ) -> None:
        self.context.emit(role, content, reasoning, log)

    def is_live(self) -> bool:
        return self.context.is_live()

    def _discarded(self, workflow: WorkflowContext, log: List[StepOutcome]) -> CommandResult:
        logger.debug(
            "discarding %s result in state %s",
            type(self).__name__, workflow.current_state.value,
        )
        return CommandResult(
            success=False,
            message=DISCARDED_MESSAGE,
            execution_log=list(log),
            success_count=workflow.success_count,
            total_steps=workflow.total_steps,
        )


def build_commit_message(request: str, steps: List[WorkflowStep]) -> str:
    """Commit message covering every planned step, run or not."""
    lines = [f"feat: {request.lower()}", "", "Modifications applied:"]
    lines.extend(f"- {step.description}" for step in steps)
    return "\n".join(lines)


class ModificationWorkflow(BaseCommand):
    """
    Shared analyze → plan → execute → commit pipeline.

    Subclasses name the target and decide whether changes are pushed.
    """

    subject = "project"

    def __init__(
        self,
        context: CommandContext,
        analyzer: Analyzer,
        planner: Planner,
        tools: ToolRegistry,
        vcs: VersionControlSink,
        state_machine: Optional[WorkflowStateMachine] = None,
    ) -> None:
        super().__init__(context)
        self.analyzer = analyzer
        self.planner = planner
        self.tools = tools
        self.vcs = vcs
        self.state_machine = state_machine or WorkflowStateMachine()

    # ==================== Subclass hooks ====================

    @abstractmethod
    def target_path(self, params: Any) -> str:
        ...

    @abstractmethod
    def target_name(self, params: Any) -> str:
        ...

    def push_target(self, params: Any) -> Optional[Repository]:
        """Remote to push to after committing; None means commit only."""
        return None

    def summary_lines(self, params: Any) -> List[str]:
        return []

    # ==================== Pipeline ====================

    async def execute(self, params: Any) -> CommandResult:
        request = params.content
        path = self.target_path(params)
        name = self.target_name(params)
        repository = self.push_target(params)
        workflow = create_initial_context(request)
        log: List[StepOutcome] = []

        self.state_machine.transition(workflow, WorkflowState.ANALYZING, TransitionReason.START_ANALYSIS)
        self.emit(
            "assistant",
            f"**Modifying {self.subject.title()}: {name}**\n\n"
            "Analyzing your request and preparing modifications...",
        )

        analysis = await self._analyze(path, request)
        if not self.is_live():
            return self._discarded(workflow, log)
        if not analysis.success:
            return self._fail(
                workflow,
                TransitionReason.ANALYSIS_FAILED,
                f"Failed to analyze existing {self.subject}: {analysis.message}",
                analysis.message,
            )

        self.state_machine.transition(workflow, WorkflowState.PLANNING, TransitionReason.ANALYSIS_COMPLETE)
        plan = await self._plan(path, request, analysis.analysis, repository)
        if not self.is_live():
            return self._discarded(workflow, log)
        if not plan.success or not plan.steps:
            return self._fail(
                workflow,
                TransitionReason.PLAN_FAILED,
                f"Failed to generate modification plan: {plan.message}",
                plan.message,
            )

        try:
            steps = self.tools.validate_plan(plan.steps)
        except PlanValidationError as exc:
            logger.warning("plan for %s rejected: %s", name, exc)
            return self._fail(
                workflow,
                TransitionReason.PLAN_FAILED,
                f"Failed to generate modification plan: {exc}",
                str(exc),
            )

        workflow.total_steps = len(steps)
        plan_message = self._plan_message(name, analysis.analysis, steps)
        self.state_machine.transition(
            workflow, WorkflowState.EXECUTING, TransitionReason.PLAN_READY, step=steps[0].step
        )
        self.emit("assistant", plan_message)

        for index, step in enumerate(steps):
            if index > 0:
                self.state_machine.transition(
                    workflow, WorkflowState.EXECUTING, TransitionReason.STEP_RECORDED, step=step.step
                )
            outcome = await self._run_step(step)
            log.append(outcome)
            if outcome.success:
                workflow.success_count += 1
            if not self.is_live():
                return self._discarded(workflow, log)

        vcs_log: List[StepOutcome] = []
        if workflow.success_count > 0:
            self.state_machine.transition(
                workflow, WorkflowState.COMMITTING, TransitionReason.CHANGES_TO_COMMIT
            )
            self.emit("assistant", "Committing changes...")
            vcs_log = await self._commit_and_push(path, build_commit_message(request, steps), repository)
            log.extend(vcs_log)
            if not self.is_live():
                return self._discarded(workflow, log)
            self.state_machine.transition(workflow, WorkflowState.DONE, TransitionReason.COMMIT_RECORDED)
        else:
            self.state_machine.transition(workflow, WorkflowState.DONE, TransitionReason.NOTHING_TO_COMMIT)

        summary = "\n".join(
            [
                f"**{self.subject.title()} Modifications Completed!**",
                "",
                "**Results:**",
                f"• Successfully executed: {workflow.success_count}/{workflow.total_steps} steps",
                *self.summary_lines(params),
                "",
                self._closing_line(vcs_log),
            ]
        )
        self.emit("assistant", summary, plan_message, log)
        logger.info(
            "%s modification of %s done: %d/%d steps",
            self.subject, name, workflow.success_count, workflow.total_steps,
        )

        return CommandResult(
            success=True,
            message=summary,
            chain_of_thought=plan_message,
            execution_log=log,
            success_count=workflow.success_count,
            total_steps=workflow.total_steps,
        )

    # ==================== Stages ====================

    async def _analyze(self, path: str, request: str) -> AnalysisResponse:
        try:
            return await self.analyzer.analyze(path, request)
        except Exception as exc:
            logger.warning("analyzer failed for %s: %s", path, exc)
            return AnalysisResponse(success=False, message=str(exc) or type(exc).__name__)

    async def _plan(
        self,
        path: str,
        request: str,
        analysis: Optional[ProjectAnalysis],
        repository: Optional[Repository],
    ) -> PlanResponse:
        context = RepositoryContext.from_repository(repository) if repository else None
        try:
            return await self.planner.plan(path, request, analysis, context)
        except Exception as exc:
            logger.warning("planner failed for %s: %s", path, exc)
            return PlanResponse(success=False, message=str(exc) or type(exc).__name__)

    async def _run_step(self, step: WorkflowStep) -> StepOutcome:
        started = time.monotonic()
        try:
            data = await self.tools.invoke(step.tool, step.params)
        except Exception as exc:
            logger.warning("step %d (%s) failed: %s", step.step, step.tool.value, exc)
            return StepOutcome(
                step=step.step,
                tool=step.tool.value,
                success=False,
                message=f"Step {step.step}: {step.description} failed",
                error=str(exc) or type(exc).__name__,
                duration_ms=(time.monotonic() - started) * 1000,
            )
        return StepOutcome(
            step=step.step,
            tool=step.tool.value,
            success=True,
            message=f"Step {step.step}: {step.description} completed",
            data=data,
            duration_ms=(time.monotonic() - started) * 1000,
        )

    async def _commit_and_push(
        self, path: str, message: str, repository: Optional[Repository]
    ) -> List[StepOutcome]:
        outcomes = [await self._vcs_call(OutcomeKind.COMMIT, "git_add_commit", self.vcs.commit(path, message))]
        if repository is not None and outcomes[0].success:
            outcomes.append(
                await self._vcs_call(OutcomeKind.PUSH, "git_push", self.vcs.push(path, repository))
            )
        return outcomes

    async def _vcs_call(
        self, kind: OutcomeKind, tool: str, call: Awaitable[VcsResponse]
    ) -> StepOutcome:
        started = time.monotonic()
        error: Optional[str] = None
        try:
            response = await call
            success, detail = response.success, response.message
        except Exception as exc:
            success, detail = False, ""
            error = str(exc) or type(exc).__name__
        if not success:
            error = error or detail or f"{kind.value} failed"
            logger.warning("%s failed: %s", kind.value, error)
        return StepOutcome(
            step=0,
            tool=tool,
            kind=kind,
            success=success,
            message=detail or f"{kind.value.title()} {'succeeded' if success else 'failed'}",
            error=error,
            duration_ms=(time.monotonic() - started) * 1000,
        )

    # ==================== Messages ====================

    def _closing_line(self, vcs_log: List[StepOutcome]) -> str:
        """Last summary line, stating what actually happened to the changes."""
        subject = self.subject.title()
        if not vcs_log:
            return f"No step succeeded, so nothing was committed to the {self.subject}."
        commit = vcs_log[0]
        if not commit.success:
            return f"{subject} updated, but the commit failed: {commit.error}"
        if len(vcs_log) == 1:
            return f"Your {self.subject} has been updated and the changes committed."
        push = vcs_log[1]
        if not push.success:
            return f"Changes were committed locally, but the push failed: {push.error}"
        return f"Your {self.subject} has been updated. Changes have been committed and pushed to GitHub."

    def _plan_message(
        self, name: str, analysis: Optional[ProjectAnalysis], steps: List[WorkflowStep]
    ) -> str:
        analysis = analysis or ProjectAnalysis()
        return "\n".join(
            [
                f"**Modifying {self.subject.title()}: {name}**",
                "",
                f"**{self.subject.title()} Analysis:**",
                f"• Type: {analysis.project_type}",
                f"• Framework: {analysis.framework}",
                f"• Current Dependencies: {len(analysis.dependencies)} packages",
                "",
                "**Modification Plan:**",
                *(f"{step.step}. {step.description}" for step in steps),
                "",
                "Executing modifications...",
            ]
        )

    def _fail(
        self,
        workflow: WorkflowContext,
        reason: TransitionReason,
        user_message: str,
        result_message: str,
    ) -> CommandResult:
        self.state_machine.transition(workflow, WorkflowState.FAILED, reason)
        logger.info("%s workflow failed: %s", self.subject, reason.value)
        self.emit("assistant", user_message)
        return CommandResult(success=False, message=result_message)
