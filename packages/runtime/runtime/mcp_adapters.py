"""Collaborators backed by the JSON tool endpoint.

Translates between the server's camelCase payloads and the protocol models.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from protocol import (
    AnalysisResponse,
    CreatedProject,
    ExecutedStep,
    FallbackAnalysis,
    FallbackSetupResponse,
    PlanResponse,
    ProjectAnalysis,
    ProjectCreationResponse,
    Repository,
    ToolName,
    VcsResponse,
    WorkflowStep,
)
from runtime.collaborators import CreateProjectOptions, RepositoryContext
from runtime.mcp_client import McpError, McpToolClient
from runtime.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _analysis_from_wire(data: Dict[str, Any]) -> ProjectAnalysis:
    return ProjectAnalysis(
        project_type=data.get("projectType") or "unknown",
        framework=data.get("framework") or "unknown",
        structure=list(data.get("structure") or []),
        dependencies={str(k): str(v) for k, v in _as_dict(data.get("dependencies")).items()},
        recommendations=list(data.get("recommendations") or []),
    )


def _analysis_to_wire(analysis: Optional[ProjectAnalysis]) -> Optional[Dict[str, Any]]:
    if analysis is None:
        return None
    return {
        "projectType": analysis.project_type,
        "framework": analysis.framework,
        "structure": analysis.structure,
        "dependencies": analysis.dependencies,
        "recommendations": analysis.recommendations,
    }


def _repository_to_wire(repository: Repository) -> Dict[str, Any]:
    return {
        "id": repository.id,
        "name": repository.name,
        "fullName": repository.full_name,
        "url": repository.url,
        "description": repository.description,
        "private": repository.private,
    }


def _created_project_from_wire(data: Dict[str, Any]) -> CreatedProject:
    steps = [
        ExecutedStep(
            step=item.get("step", 0),
            action=item.get("action", ""),
            tool=item.get("tool", ""),
            success=bool(item.get("success")),
            result=item.get("result"),
            error=item.get("error"),
            **({"timestamp": item["timestamp"]} if item.get("timestamp") else {}),
        )
        for item in data.get("executionSteps") or []
        if isinstance(item, dict)
    ]
    extra: Dict[str, Any] = {}
    if data.get("createdAt"):
        extra["created_at"] = data["createdAt"]
    return CreatedProject(
        name=data.get("name", ""),
        path=data.get("path", ""),
        type=data.get("type", "unknown"),
        description=data.get("description") or "",
        confidence=data.get("confidence") or 0.0,
        reasoning=data.get("reasoning") or "",
        features=list(data.get("features") or []),
        repository_url=data.get("repositoryUrl"),
        total_steps=data.get("totalSteps") or len(steps),
        execution_steps=steps,
        ai_powered=data.get("aiPowered", True),
        llm_used=data.get("llmUsed") or "unknown",
        **extra,
    )


class McpAnalyzer:
    def __init__(self, client: McpToolClient) -> None:
        self._client = client

    async def analyze(self, path: str, request_text: str) -> AnalysisResponse:
        result = _as_dict(
            await self._client.call(
                "analyze_existing_project",
                {"projectPath": path, "requestDescription": request_text},
            )
        )
        analysis = result.get("analysis")
        return AnalysisResponse(
            success=bool(result.get("success")),
            message=result.get("message") or "",
            analysis=_analysis_from_wire(analysis) if isinstance(analysis, dict) else None,
        )


class McpPlanner:
    def __init__(self, client: McpToolClient) -> None:
        self._client = client

    async def plan(
        self,
        path: str,
        request_text: str,
        analysis: Optional[ProjectAnalysis],
        repository: Optional[RepositoryContext] = None,
    ) -> PlanResponse:
        params: Dict[str, Any] = {
            "projectPath": path,
            "requestDescription": request_text,
            "analysisData": _analysis_to_wire(analysis),
        }
        if repository is not None:
            params["repositoryContext"] = {
                "name": repository.name,
                "fullName": repository.full_name,
                "url": repository.url,
                "description": repository.description,
            }
        result = _as_dict(await self._client.call("generate_modification_plan", params))
        message = result.get("message") or ""
        raw_plan = _as_dict(result.get("analysis")).get("modificationPlan")
        if not result.get("success") or not raw_plan:
            return PlanResponse(success=False, message=message)

        try:
            steps = [WorkflowStep.model_validate(item) for item in raw_plan]
        except ValidationError as exc:
            logger.warning("planner returned an invalid plan: %s", exc)
            return PlanResponse(
                success=False,
                message=f"Plan rejected: {exc.error_count()} invalid step field(s)",
            )
        return PlanResponse(success=True, message=message, steps=steps)


class McpVersionControl:
    def __init__(self, client: McpToolClient) -> None:
        self._client = client

    async def commit(self, path: str, message: str) -> VcsResponse:
        result = await self._client.call("git_add_commit", {"path": path, "message": message})
        return self._response(result, "Changes committed")

    async def push(self, path: str, repository: Repository) -> VcsResponse:
        result = await self._client.call(
            "git_push", {"path": path, "repository": _repository_to_wire(repository)}
        )
        return self._response(result, "Changes pushed")

    @staticmethod
    def _response(result: Any, default_message: str) -> VcsResponse:
        if isinstance(result, dict) and "success" in result:
            return VcsResponse(
                success=bool(result["success"]),
                message=result.get("message") or default_message,
            )
        return VcsResponse(success=True, message=default_message)


class McpProjectCreator:
    def __init__(self, client: McpToolClient) -> None:
        self._client = client

    async def create_project(
        self, description: str, options: CreateProjectOptions
    ) -> ProjectCreationResponse:
        result = _as_dict(
            await self._client.call(
                "create_project_with_ai",
                {
                    "description": description,
                    "fastMode": options.fast_mode,
                    "aiProvider": options.ai_provider,
                },
            )
        )
        project = result.get("project")
        return ProjectCreationResponse(
            success=bool(result.get("success")),
            message=result.get("message") or "",
            project=_created_project_from_wire(project) if isinstance(project, dict) else None,
            chain_of_thought=result.get("chainOfThought"),
        )


class McpFallbackCreator:
    """Non-AI project setup. Never raises; failures come back as ``success=False``."""

    def __init__(self, client: McpToolClient) -> None:
        self._client = client

    async def setup_project(
        self, description: str, project_path: str, fast_mode: bool = False
    ) -> FallbackSetupResponse:
        try:
            result = _as_dict(
                await self._client.call(
                    "intelligent_project_setup",
                    {
                        "description": description,
                        "projectPath": project_path,
                        "autoExecute": False,
                        "fastMode": fast_mode,
                    },
                )
            )
        except McpError as exc:
            logger.warning("fallback project setup failed: %s", exc)
            return FallbackSetupResponse(success=False, message=exc.message)

        try:
            return self._response(result)
        except ValidationError as exc:
            logger.warning("fallback project setup returned an invalid payload: %s", exc)
            return FallbackSetupResponse(
                success=False,
                message=f"Fallback setup rejected: {exc.error_count()} invalid field(s)",
            )

    @staticmethod
    def _response(result: Dict[str, Any]) -> FallbackSetupResponse:
        analysis = result.get("analysis")
        return FallbackSetupResponse(
            success=bool(result.get("success")),
            message=result.get("message") or "",
            analysis=FallbackAnalysis(
                project_type=analysis.get("projectType") or "unknown",
                confidence=analysis.get("confidence") or 0.0,
                reasoning=analysis.get("reasoning") or "",
                features=list(analysis.get("features") or []),
                recommended_name=analysis.get("recommendedName") or "",
            )
            if isinstance(analysis, dict)
            else None,
            planned_actions=[str(action) for action in result.get("plannedActions") or []],
            repository_url=result.get("repositoryUrl"),
        )


def register_mcp_tools(
    registry: ToolRegistry,
    client: McpToolClient,
    tools: Optional[Iterable[ToolName]] = None,
) -> List[ToolName]:
    """Bind each tool to a remote call of the same name. Returns what was bound."""
    bound: List[ToolName] = []
    for tool in tools or list(ToolName):
        registry.register(tool, _remote_call(client, tool))
        bound.append(tool)
    logger.info("registered %d remote tools", len(bound))
    return bound


def _remote_call(client: McpToolClient, tool: ToolName):
    async def call(params: dict) -> Any:
        return await client.call(tool.value, params)

    return call
