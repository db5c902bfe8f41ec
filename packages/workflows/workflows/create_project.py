from __future__ import annotations

import logging
import posixpath
import time
from dataclasses import dataclass
from typing import List, Optional

from planner import (
    TransitionReason,
    WorkflowContext,
    WorkflowState,
    WorkflowStateMachine,
    create_initial_context,
)
from protocol import (
    CommandResult,
    CreatedProject,
    FallbackSetupResponse,
    OutcomeKind,
    ProjectCreationResponse,
    ProjectInfo,
    StepOutcome,
)
from runtime.collaborators import AIProjectCreator, CreateProjectOptions, FallbackProjectCreator
from runtime.context import CommandContext
from workflows.base import BaseCommand

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_PROJECT_ROOT = "/tmp/projects"


@dataclass(frozen=True)
class CreateProjectParams:
    content: str


class CreateProjectCommand(BaseCommand):
    """
    Single-shot project creation.

    One AI call returns the finished project plus the steps it already ran.
    If that call fails, a non-AI fallback setup runs instead; the result then
    reports the AI failure, and only a fallback that produced a repository URL
    yields a created project.
    """

    def __init__(
        self,
        context: CommandContext,
        creator: AIProjectCreator,
        fallback: FallbackProjectCreator,
        options: Optional[CreateProjectOptions] = None,
        fallback_project_root: str = DEFAULT_FALLBACK_PROJECT_ROOT,
        state_machine: Optional[WorkflowStateMachine] = None,
    ) -> None:
        super().__init__(context)
        self.creator = creator
        self.fallback = fallback
        self.options = options or CreateProjectOptions()
        self.fallback_project_root = fallback_project_root
        self.state_machine = state_machine or WorkflowStateMachine()

    async def execute(self, params: CreateProjectParams) -> CommandResult:
        workflow = create_initial_context(params.content)
        self.state_machine.transition(workflow, WorkflowState.EXECUTING, TransitionReason.START_CREATION)

        try:
            response = await self.creator.create_project(params.content, self.options)
        except Exception as exc:
            logger.warning("AI project creation raised: %s", exc)
            response = ProjectCreationResponse(success=False, message=str(exc) or type(exc).__name__)

        if not self.is_live():
            return self._discarded(workflow, [])

        if response.success and response.project is not None:
            return self._created(workflow, response, response.project)
        return await self._run_fallback(workflow, params, response)

    def _created(
        self, workflow: WorkflowContext, response: ProjectCreationResponse, project: CreatedProject
    ) -> CommandResult:
        chain_of_thought = response.chain_of_thought or _compose_chain_of_thought(project)
        log = [
            StepOutcome(
                step=executed.step,
                tool=executed.tool,
                kind=OutcomeKind.EXTERNAL,
                success=executed.success,
                message=(
                    f"Step {executed.step}: {executed.action} completed successfully"
                    if executed.success
                    else f"Step {executed.step}: {executed.action} failed - {executed.error}"
                ),
                data=executed.result,
                error=executed.error,
                timestamp=executed.timestamp,
            )
            for executed in project.execution_steps
        ]
        workflow.total_steps = project.total_steps
        workflow.success_count = sum(1 for executed in project.execution_steps if executed.success)

        content = _success_message(project)
        self.state_machine.transition(workflow, WorkflowState.DONE, TransitionReason.PROJECT_CREATED)
        self.emit("assistant", content, chain_of_thought, log)
        logger.info("project %s created at %s", project.name, project.path)

        return CommandResult(
            success=True,
            message=content,
            chain_of_thought=chain_of_thought,
            execution_log=log,
            success_count=workflow.success_count,
            total_steps=workflow.total_steps,
            created_project=ProjectInfo(
                name=project.name,
                path=project.path,
                template=project.type,
                status="completed",
                repository_url=project.repository_url,
            ),
        )

    async def _run_fallback(
        self, workflow: WorkflowContext, params: CreateProjectParams, response: ProjectCreationResponse
    ) -> CommandResult:
        ai_message = response.message or "Project creation failed"
        logger.info("AI project creation failed, running fallback: %s", ai_message)
        self.emit("assistant", f"AI analysis failed, using fallback method...\n\n{ai_message}")

        project_path = posixpath.join(
            self.fallback_project_root, f"fallback-{int(time.time() * 1000)}"
        )
        try:
            fallback = await self.fallback.setup_project(
                params.content, project_path, self.options.fast_mode
            )
        except Exception as exc:
            logger.warning("fallback project setup raised: %s", exc)
            fallback = FallbackSetupResponse(success=False, message=str(exc) or type(exc).__name__)

        if not self.is_live():
            return self._discarded(workflow, [])

        if fallback.success:
            self.state_machine.transition(workflow, WorkflowState.DONE, TransitionReason.FALLBACK_COMPLETED)
        else:
            self.state_machine.transition(workflow, WorkflowState.FAILED, TransitionReason.FALLBACK_FAILED)
        fallback_message = fallback.message or (
            "Project setup completed" if fallback.success else "Fallback project setup failed"
        )
        self.emit("assistant", fallback_message, _fallback_reasoning(fallback))

        created: Optional[ProjectInfo] = None
        if fallback.repository_url:
            analysis = fallback.analysis
            created = ProjectInfo(
                name=(analysis.recommended_name if analysis and analysis.recommended_name
                      else posixpath.basename(project_path)),
                path=project_path,
                template=analysis.project_type if analysis else "unknown",
                status="completed",
                repository_url=fallback.repository_url,
            )

        return CommandResult(
            success=False,
            message=ai_message,
            chain_of_thought=_fallback_reasoning(fallback),
            created_project=created,
        )


def _compose_chain_of_thought(project: CreatedProject) -> str:
    lines = [
        f"AI Analysis: {project.reasoning}",
        f"Confidence: {project.confidence * 100:.1f}%",
        f"Project Type: {project.type}",
    ]
    if project.features:
        lines.append(f"Detected Features: {', '.join(project.features)}")
    lines.append("Execution Plan:")
    lines.extend(
        f"  {'[ok]' if executed.success else '[failed]'} Step {executed.step}: {executed.action}"
        for executed in project.execution_steps
    )
    if project.repository_url:
        lines.append(f"Repository: {project.repository_url}")
    lines.append(f"Project Path: {project.path}")
    return "\n".join(lines)


def _success_message(project: CreatedProject) -> str:
    lines: List[str] = [
        "**Project Created Successfully!**",
        "",
        "**Analysis Results:**",
        f"• Type: {project.type}",
        f"• Confidence: {project.confidence * 100:.1f}%",
        f"• AI Model: {project.llm_used}",
    ]
    if project.features:
        lines.append(f"• Features: {', '.join(project.features)}")
    lines.extend(
        [
            "",
            "**Project Details:**",
            f"• Name: {project.name}",
            f"• Path: {project.path}",
            f"• Total Steps: {project.total_steps}",
            f"• Created: {project.created_at:%Y-%m-%d %H:%M:%S}",
        ]
    )
    if project.repository_url:
        lines.append(f"• Repository: {project.repository_url}")
    lines.extend(["", "Your project is ready! Check the Project Preview panel to download or clone it."])
    return "\n".join(lines)


def _fallback_reasoning(fallback: FallbackSetupResponse) -> Optional[str]:
    analysis = fallback.analysis
    if analysis is None and not fallback.planned_actions:
        return None
    lines: List[str] = []
    if analysis is not None:
        lines.extend(
            [
                f"Fallback Analysis: {analysis.reasoning}",
                f"Confidence: {analysis.confidence * 100:.1f}%",
                f"Project Type: {analysis.project_type}",
            ]
        )
        if analysis.features:
            lines.append(f"Detected Features: {', '.join(analysis.features)}")
    if fallback.planned_actions:
        lines.append("Planned Actions:")
        lines.extend(f"  - {action}" for action in fallback.planned_actions)
    return "\n".join(lines)
