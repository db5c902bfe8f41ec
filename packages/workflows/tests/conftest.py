"""Shared collaborator fakes for command workflow tests."""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from protocol import (
    AnalysisResponse,
    PlanResponse,
    ProjectAnalysis,
    ProjectInfo,
    Repository,
    ToolName,
    VcsResponse,
    WorkflowStep,
)
from runtime.context import CommandContext, LivenessFlag
from runtime.tool_registry import ToolRegistry
from runtime.transcript import MessageTranscript


class FakeAnalyzer:
    def __init__(self, response: Optional[AnalysisResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response or AnalysisResponse(
            success=True,
            message="analyzed",
            analysis=ProjectAnalysis(project_type="react", framework="next", dependencies={"react": "18"}),
        )
        self.error = error
        self.calls: List[tuple] = []

    async def analyze(self, path: str, request_text: str) -> AnalysisResponse:
        self.calls.append((path, request_text))
        if self.error is not None:
            raise self.error
        return self.response


class FakePlanner:
    def __init__(self, steps: Optional[List[WorkflowStep]] = None, response: Optional[PlanResponse] = None) -> None:
        self.response = response or PlanResponse(success=True, message="planned", steps=steps or [])
        self.calls: List[Dict[str, Any]] = []

    async def plan(self, path, request_text, analysis, repository=None) -> PlanResponse:
        self.calls.append(
            {"path": path, "request": request_text, "analysis": analysis, "repository": repository}
        )
        return self.response


class FakeVcs:
    def __init__(self, commit_ok: bool = True, push_ok: bool = True, push_error: Optional[Exception] = None) -> None:
        self.commit_ok = commit_ok
        self.push_ok = push_ok
        self.push_error = push_error
        self.commits: List[tuple] = []
        self.pushes: List[tuple] = []

    async def commit(self, path: str, message: str) -> VcsResponse:
        self.commits.append((path, message))
        return VcsResponse(success=self.commit_ok, message="committed" if self.commit_ok else "nothing to commit")

    async def push(self, path: str, repository: Repository) -> VcsResponse:
        self.pushes.append((path, repository))
        if self.push_error is not None:
            raise self.push_error
        return VcsResponse(success=self.push_ok, message="pushed" if self.push_ok else "rejected")


class RecordingTool:
    """Tool entry point that records calls and fails when params say so."""

    def __init__(self) -> None:
        self.calls: List[int] = []

    async def __call__(self, params: dict) -> Dict[str, Any]:
        self.calls.append(params["n"])
        if params.get("fail"):
            raise RuntimeError(f"step {params['n']} exploded")
        return {"ok": params["n"]}


def make_steps(count: int, failing: tuple = ()) -> List[WorkflowStep]:
    return [
        WorkflowStep(
            step=n,
            action="generate",
            tool=ToolName.GENERATE_CODE,
            params={"n": n, "fail": n in failing},
            description=f"Change {n}",
        )
        for n in range(1, count + 1)
    ]


@pytest.fixture
def transcript() -> MessageTranscript:
    return MessageTranscript()


@pytest.fixture
def liveness() -> LivenessFlag:
    return LivenessFlag()


@pytest.fixture
def context(transcript: MessageTranscript, liveness: LivenessFlag) -> CommandContext:
    return CommandContext(sink=transcript, liveness=liveness)


@pytest.fixture
def tool() -> RecordingTool:
    return RecordingTool()


@pytest.fixture
def registry(tool: RecordingTool) -> ToolRegistry:
    registry = ToolRegistry()
    registry.register(ToolName.GENERATE_CODE, tool)
    return registry


@pytest.fixture
def project() -> ProjectInfo:
    return ProjectInfo(name="todo-app", path="/tmp/projects/todo-app", template="react")


@pytest.fixture
def repository() -> Repository:
    return Repository(
        id="42",
        name="todo-app",
        full_name="octo/todo-app",
        url="https://github.com/octo/todo-app",
        description="Todo list",
    )


@pytest.fixture
def fakes() -> SimpleNamespace:
    return SimpleNamespace(
        Analyzer=FakeAnalyzer,
        Planner=FakePlanner,
        Vcs=FakeVcs,
        make_steps=make_steps,
    )
