from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Intent(str, Enum):
    """Purpose of a chat message."""
    NEW_PROJECT = "new_project"
    REPOSITORY_MODIFICATION = "repository_modification"
    PROJECT_MODIFICATION = "project_modification"


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    intent: Intent
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str
