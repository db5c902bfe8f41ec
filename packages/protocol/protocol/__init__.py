from protocol.classification import Classification, Intent
from protocol.messages import ChatMessage, MessageRole
from protocol.session import ProjectInfo, Repository, SessionState
from protocol.tools import (
    TOOL_PARAM_MODELS,
    CreateDirectoryParams,
    InstallDependenciesParams,
    PackagesParams,
    RunScriptParams,
    ToolName,
    WriteFileParams,
)
from protocol.workflow import (
    AnalysisResponse,
    CommandResult,
    CreatedProject,
    ExecutedStep,
    FallbackAnalysis,
    FallbackSetupResponse,
    OutcomeKind,
    PlanResponse,
    ProjectAnalysis,
    ProjectCreationResponse,
    StepOutcome,
    VcsResponse,
    WorkflowStep,
)


def schema_for(model: type) -> dict:
    """Lightweight JSON schema helper."""
    return model.model_json_schema()


__all__ = [
    "AnalysisResponse",
    "CreateDirectoryParams",
    "InstallDependenciesParams",
    "PackagesParams",
    "RunScriptParams",
    "TOOL_PARAM_MODELS",
    "WriteFileParams",
    "ChatMessage",
    "Classification",
    "CommandResult",
    "CreatedProject",
    "ExecutedStep",
    "FallbackAnalysis",
    "FallbackSetupResponse",
    "Intent",
    "MessageRole",
    "OutcomeKind",
    "PlanResponse",
    "ProjectAnalysis",
    "ProjectCreationResponse",
    "ProjectInfo",
    "Repository",
    "SessionState",
    "StepOutcome",
    "ToolName",
    "VcsResponse",
    "WorkflowStep",
    "schema_for",
]
