from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from protocol.session import ProjectInfo
from protocol.tools import ToolName


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowStep(BaseModel):
    """One unit of planned work. Steps run in ascending ``step`` order."""
    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=1)
    action: str = ""
    tool: ToolName
    params: Dict[str, Any] = Field(default_factory=dict)
    description: str = ""


class OutcomeKind(str, Enum):
    STEP = "step"
    COMMIT = "commit"
    PUSH = "push"
    EXTERNAL = "external"  # pre-executed by the project creation service


class StepOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: int = Field(ge=0)
    tool: str
    kind: OutcomeKind = OutcomeKind.STEP
    success: bool
    message: str = ""
    data: Any = None
    error: Optional[str] = None
    duration_ms: float = 0.0
    timestamp: datetime = Field(default_factory=utc_now)


class CommandResult(BaseModel):
    """Terminal artifact of one workflow invocation."""
    success: bool
    message: str
    chain_of_thought: Optional[str] = None
    execution_log: List[StepOutcome] = Field(default_factory=list)
    success_count: int = 0
    total_steps: int = 0
    created_project: Optional[ProjectInfo] = None


# ==================== Collaborator responses ====================

class ProjectAnalysis(BaseModel):
    project_type: str = "unknown"
    framework: str = "unknown"
    structure: List[str] = Field(default_factory=list)
    dependencies: Dict[str, str] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    success: bool
    message: str = ""
    analysis: Optional[ProjectAnalysis] = None


class PlanResponse(BaseModel):
    success: bool
    message: str = ""
    steps: List[WorkflowStep] = Field(default_factory=list)


class VcsResponse(BaseModel):
    success: bool
    message: str = ""


class ExecutedStep(BaseModel):
    """A step the project creation service already ran on its side."""
    step: int
    action: str
    tool: str
    success: bool
    result: Any = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)


class CreatedProject(BaseModel):
    name: str
    path: str
    type: str
    description: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    features: List[str] = Field(default_factory=list)
    repository_url: Optional[str] = None
    total_steps: int = 0
    execution_steps: List[ExecutedStep] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    ai_powered: bool = True
    llm_used: str = "unknown"


class ProjectCreationResponse(BaseModel):
    success: bool
    message: str = ""
    project: Optional[CreatedProject] = None
    chain_of_thought: Optional[str] = None


class FallbackAnalysis(BaseModel):
    project_type: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    features: List[str] = Field(default_factory=list)
    recommended_name: str = ""


class FallbackSetupResponse(BaseModel):
    success: bool
    message: str = ""
    analysis: Optional[FallbackAnalysis] = None
    planned_actions: List[str] = Field(default_factory=list)
    repository_url: Optional[str] = None
