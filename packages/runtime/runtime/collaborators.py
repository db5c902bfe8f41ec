from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from protocol import (
    AnalysisResponse,
    FallbackSetupResponse,
    PlanResponse,
    ProjectAnalysis,
    ProjectCreationResponse,
    Repository,
    VcsResponse,
)


@dataclass(frozen=True)
class RepositoryContext:
    """What the planner is told about a remote-backed target."""

    name: str
    full_name: str
    url: str
    description: Optional[str] = None

    @classmethod
    def from_repository(cls, repository: Repository) -> "RepositoryContext":
        return cls(
            name=repository.name,
            full_name=repository.full_name,
            url=repository.url,
            description=repository.description,
        )


@dataclass(frozen=True)
class CreateProjectOptions:
    fast_mode: bool = False
    ai_provider: Optional[str] = None


class Analyzer(Protocol):
    async def analyze(self, path: str, request_text: str) -> AnalysisResponse:
        ...


class Planner(Protocol):
    async def plan(
        self,
        path: str,
        request_text: str,
        analysis: Optional[ProjectAnalysis],
        repository: Optional[RepositoryContext] = None,
    ) -> PlanResponse:
        ...


class VersionControlSink(Protocol):
    async def commit(self, path: str, message: str) -> VcsResponse:
        ...

    async def push(self, path: str, repository: Repository) -> VcsResponse:
        ...


class AIProjectCreator(Protocol):
    async def create_project(
        self, description: str, options: CreateProjectOptions
    ) -> ProjectCreationResponse:
        ...


class FallbackProjectCreator(Protocol):
    async def setup_project(
        self, description: str, project_path: str, fast_mode: bool = False
    ) -> FallbackSetupResponse:
        ...


class RepositoryCache(Protocol):
    def invalidate(self) -> None:
        ...

    def refresh(self) -> None:
        ...
