from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

_GITHUB_REPO_PATTERN = re.compile(r"github\.com/[^/]+/([^/?#]+)")

ProjectStatus = Literal["creating", "completed", "error"]


class Repository(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    full_name: str
    url: str
    description: Optional[str] = None
    private: bool = False

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]


class ProjectInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path: str = ""
    template: str = "unknown"
    status: ProjectStatus = "completed"
    repository_url: Optional[str] = None

    @property
    def repository_name(self) -> str:
        """Repository name taken from a GitHub URL, else the project name."""
        if self.repository_url:
            match = _GITHUB_REPO_PATTERN.search(self.repository_url)
            if match:
                name = match.group(1)
                return name[:-4] if name.endswith(".git") else name
        return self.name


class SessionState(BaseModel):
    """Shared session record. Only the state coordinator produces new snapshots."""
    model_config = ConfigDict(frozen=True)

    selected_repository: Optional[Repository] = None
    active_project: Optional[ProjectInfo] = None
    is_creating_new_project: bool = False
    newly_created_marker: Optional[str] = None
    refresh_version: int = 0

    @property
    def is_repository_mode(self) -> bool:
        return self.selected_repository is not None and not self.is_creating_new_project

    @property
    def current_repository_info(self) -> Optional[dict]:
        repository = self.selected_repository
        if repository is None:
            return None
        return {
            "owner": repository.owner,
            "repo": repository.name,
            "full_name": repository.full_name,
        }
