from __future__ import annotations

from dataclasses import dataclass
from typing import List

from protocol import ProjectInfo
from workflows.base import ModificationWorkflow


@dataclass(frozen=True)
class ModifyProjectParams:
    content: str
    project: ProjectInfo


class ModifyProjectCommand(ModificationWorkflow):
    """Modifies the active local project in place. Commits, never pushes."""

    subject = "project"

    def target_path(self, params: ModifyProjectParams) -> str:
        return params.project.path

    def target_name(self, params: ModifyProjectParams) -> str:
        return params.project.name

    def summary_lines(self, params: ModifyProjectParams) -> List[str]:
        lines = [
            f"• Project: {params.project.name}",
            f"• Path: {params.project.path}",
        ]
        if params.project.repository_url:
            lines.append(f"• Repository: {params.project.repository_url}")
        return lines
