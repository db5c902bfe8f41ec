import asyncio
from typing import List

from protocol import (
    CreatedProject,
    ExecutedStep,
    FallbackAnalysis,
    FallbackSetupResponse,
    OutcomeKind,
    ProjectCreationResponse,
)
from runtime.collaborators import CreateProjectOptions
from workflows import CreateProjectCommand, CreateProjectParams


class StubCreator:
    def __init__(self, response=None, error=None) -> None:
        self.response = response
        self.error = error
        self.calls: List[tuple] = []

    async def create_project(self, description, options):
        self.calls.append((description, options))
        if self.error is not None:
            raise self.error
        return self.response


class StubFallback:
    def __init__(self, response=None, error=None) -> None:
        self.response = response or FallbackSetupResponse(
            success=True,
            message="Basic React project planned",
            analysis=FallbackAnalysis(project_type="react", confidence=0.5, recommended_name="auth-app"),
            planned_actions=["create package.json"],
        )
        self.error = error
        self.calls: List[tuple] = []

    async def setup_project(self, description, project_path, fast_mode=False):
        self.calls.append((description, project_path, fast_mode))
        if self.error is not None:
            raise self.error
        return self.response


def _project(repository_url="https://github.com/octo/auth-app") -> CreatedProject:
    return CreatedProject(
        name="auth-app",
        path="/tmp/projects/auth-app",
        type="react",
        confidence=0.92,
        reasoning="Login screens suggest a React SPA",
        features=["authentication"],
        repository_url=repository_url,
        total_steps=2,
        execution_steps=[
            ExecutedStep(step=1, action="scaffold", tool="setup_project_from_template", success=True),
            ExecutedStep(step=2, action="push", tool="git_push", success=False, error="no token"),
        ],
        llm_used="gpt-4o",
    )


def test_ai_success_returns_created_project(context, transcript):
    creator = StubCreator(ProjectCreationResponse(success=True, message="ok", project=_project()))
    fallback = StubFallback()
    command = CreateProjectCommand(
        context, creator, fallback, options=CreateProjectOptions(fast_mode=True, ai_provider="gemini")
    )

    result = asyncio.run(command.execute(CreateProjectParams(content="create new project with authentication")))

    assert result.success
    assert result.created_project.name == "auth-app"
    assert result.created_project.template == "react"
    assert result.created_project.repository_url == "https://github.com/octo/auth-app"
    assert creator.calls[0][1].ai_provider == "gemini"
    assert fallback.calls == []
    assert len(transcript) == 1
    assert "Project Created Successfully" in transcript.last().content


def test_executed_steps_become_external_log_entries(context):
    creator = StubCreator(ProjectCreationResponse(success=True, project=_project()))
    command = CreateProjectCommand(context, creator, StubFallback())

    result = asyncio.run(command.execute(CreateProjectParams(content="build app")))

    assert [entry.kind for entry in result.execution_log] == [OutcomeKind.EXTERNAL, OutcomeKind.EXTERNAL]
    assert result.execution_log[1].error == "no token"
    assert result.success_count == 1
    assert result.total_steps == 2


def test_server_chain_of_thought_is_preferred(context, transcript):
    creator = StubCreator(
        ProjectCreationResponse(success=True, project=_project(), chain_of_thought="server reasoning")
    )
    command = CreateProjectCommand(context, creator, StubFallback())

    result = asyncio.run(command.execute(CreateProjectParams(content="build app")))

    assert result.chain_of_thought == "server reasoning"
    assert transcript.last().reasoning == "server reasoning"


def test_local_chain_of_thought_when_server_sends_none(context):
    creator = StubCreator(ProjectCreationResponse(success=True, project=_project()))
    command = CreateProjectCommand(context, creator, StubFallback())

    result = asyncio.run(command.execute(CreateProjectParams(content="build app")))

    assert "Confidence: 92.0%" in result.chain_of_thought
    assert "Project Path: /tmp/projects/auth-app" in result.chain_of_thought


def test_ai_failure_runs_fallback_and_reports_ai_failure(context, transcript):
    creator = StubCreator(ProjectCreationResponse(success=False, message="OpenAI quota exceeded"))
    fallback = StubFallback()
    command = CreateProjectCommand(context, creator, fallback, fallback_project_root="/srv/projects")

    result = asyncio.run(command.execute(CreateProjectParams(content="create new project with authentication")))

    assert not result.success
    assert result.message == "OpenAI quota exceeded"
    assert result.created_project is None
    description, project_path, fast_mode = fallback.calls[0]
    assert description == "create new project with authentication"
    assert project_path.startswith("/srv/projects/fallback-")
    contents = [message.content for message in transcript.messages()]
    assert "OpenAI quota exceeded" in contents[0]
    assert contents[-1] == "Basic React project planned"


def test_ai_exception_runs_fallback(context):
    creator = StubCreator(error=RuntimeError("API key missing"))
    fallback = StubFallback()
    command = CreateProjectCommand(context, creator, fallback)

    result = asyncio.run(command.execute(CreateProjectParams(content="scaffold a blog")))

    assert not result.success
    assert result.message == "API key missing"
    assert len(fallback.calls) == 1


def test_fallback_exception_never_escapes(context, transcript):
    creator = StubCreator(ProjectCreationResponse(success=False, message="AI down"))
    fallback = StubFallback(error=RuntimeError("disk full"))
    command = CreateProjectCommand(context, creator, fallback)

    result = asyncio.run(command.execute(CreateProjectParams(content="scaffold a blog")))

    assert not result.success
    assert result.message == "AI down"
    assert transcript.last().content == "disk full"


def test_fallback_with_repository_url_yields_project(context):
    creator = StubCreator(ProjectCreationResponse(success=False, message="AI down"))
    fallback = StubFallback(
        FallbackSetupResponse(
            success=True,
            message="Repository created",
            analysis=FallbackAnalysis(project_type="vue", recommended_name="blog"),
            repository_url="https://github.com/octo/blog",
        )
    )
    command = CreateProjectCommand(context, creator, fallback)

    result = asyncio.run(command.execute(CreateProjectParams(content="scaffold a blog")))

    assert not result.success
    assert result.created_project.name == "blog"
    assert result.created_project.template == "vue"
    assert result.created_project.repository_url == "https://github.com/octo/blog"


def test_closed_session_discards_ai_result(context, transcript, liveness):
    class ClosingCreator:
        async def create_project(self, description, options):
            liveness.close()
            return ProjectCreationResponse(success=True, project=_project())

    command = CreateProjectCommand(context, ClosingCreator(), StubFallback())

    result = asyncio.run(command.execute(CreateProjectParams(content="build app")))

    assert not result.success
    assert result.created_project is None
    assert len(transcript) == 0
