import pytest
from pydantic import ValidationError

from protocol import (
    ChatMessage,
    Classification,
    CommandResult,
    Intent,
    ProjectInfo,
    Repository,
    SessionState,
    StepOutcome,
    ToolName,
    WorkflowStep,
    schema_for,
)


def _repository(name: str = "demo") -> Repository:
    return Repository(
        id="1",
        name=name,
        full_name=f"octo/{name}",
        url=f"https://github.com/octo/{name}",
    )


def test_protocol_models_can_instantiate():
    classification = Classification(intent=Intent.NEW_PROJECT, confidence=0.6, reason="default")
    step = WorkflowStep(step=1, action="install", tool="add_packages", params={"packages": ["jotai"]})
    outcome = StepOutcome(step=1, tool="add_packages", success=True)
    result = CommandResult(success=True, message="done", execution_log=[outcome])
    message = ChatMessage(role="assistant", content="hi", log=[outcome])

    assert classification.intent is Intent.NEW_PROJECT
    assert step.tool is ToolName.ADD_PACKAGES
    assert result.execution_log[0].success is True
    assert message.log == [outcome]


def test_classification_confidence_is_bounded():
    with pytest.raises(ValidationError):
        Classification(intent=Intent.NEW_PROJECT, confidence=1.5, reason="too sure")


def test_workflow_step_rejects_unknown_tool():
    with pytest.raises(ValidationError):
        WorkflowStep(step=1, tool="format_hard_drive")


def test_workflow_step_is_one_based():
    with pytest.raises(ValidationError):
        WorkflowStep(step=0, tool="write_file")


def test_session_state_is_frozen():
    state = SessionState()

    with pytest.raises(ValidationError):
        state.is_creating_new_project = True


def test_session_state_derived_views():
    state = SessionState(selected_repository=_repository("app"))

    assert state.is_repository_mode is True
    assert state.current_repository_info == {"owner": "octo", "repo": "app", "full_name": "octo/app"}

    creating = SessionState(is_creating_new_project=True)
    assert creating.is_repository_mode is False
    assert creating.current_repository_info is None


def test_repository_equality_is_by_value():
    assert _repository("a") == _repository("a")
    assert _repository("a") != _repository("b")


def test_project_repository_name_prefers_github_url():
    project = ProjectInfo(name="local-name", repository_url="https://github.com/octo/remote-name.git")
    assert project.repository_name == "remote-name"
    assert ProjectInfo(name="plain").repository_name == "plain"


def test_schema_for_returns_json_schema():
    schema = schema_for(WorkflowStep)
    assert schema["title"] == "WorkflowStep"
    assert "tool" in schema["properties"]
