from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import List, Optional

from protocol import Repository
from runtime.collaborators import Analyzer, Planner, VersionControlSink
from runtime.context import CommandContext
from runtime.tool_registry import ToolRegistry
from workflows.base import ModificationWorkflow

DEFAULT_REPOSITORY_WORKDIR = "/tmp/repositories"


@dataclass(frozen=True)
class ModifyRepositoryParams:
    content: str
    repository: Repository


class ModifyRepositoryCommand(ModificationWorkflow):
    """
    Modifies a remote-backed repository through its local working copy.

    The working copy lives at ``<repository_workdir>/<repository name>``;
    changes are committed there and pushed back to the repository.
    """

    subject = "repository"

    def __init__(
        self,
        context: CommandContext,
        analyzer: Analyzer,
        planner: Planner,
        tools: ToolRegistry,
        vcs: VersionControlSink,
        repository_workdir: str = DEFAULT_REPOSITORY_WORKDIR,
        **kwargs,
    ) -> None:
        super().__init__(context, analyzer, planner, tools, vcs, **kwargs)
        self.repository_workdir = repository_workdir

    def target_path(self, params: ModifyRepositoryParams) -> str:
        return posixpath.join(self.repository_workdir, params.repository.name)

    def target_name(self, params: ModifyRepositoryParams) -> str:
        return params.repository.name

    def push_target(self, params: ModifyRepositoryParams) -> Optional[Repository]:
        return params.repository

    def summary_lines(self, params: ModifyRepositoryParams) -> List[str]:
        return [
            f"• Repository: {params.repository.name}",
            f"• URL: {params.repository.url}",
        ]
