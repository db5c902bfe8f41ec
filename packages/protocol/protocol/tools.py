from enum import Enum
from typing import Dict, List, Type

from pydantic import BaseModel, Field


class ToolName(str, Enum):
    """Closed set of tool identifiers a modification plan may reference."""
    WRITE_FILE = "write_file"
    CREATE_DIRECTORY = "create_directory"
    GENERATE_CODE = "generate_code"
    FORMAT_CODE = "format_code"
    ADD_PACKAGES = "add_packages"
    REMOVE_PACKAGES = "remove_packages"
    UPDATE_PACKAGES = "update_packages"
    INSTALL_DEPENDENCIES = "install_dependencies"
    RUN_SCRIPT = "run_script"
    SETUP_PROJECT_FROM_TEMPLATE = "setup_project_from_template"
    GIT_ADD_COMMIT = "git_add_commit"
    GIT_PUSH = "git_push"
    GIT_CREATE_BRANCH = "git_create_branch"
    GIT_STATUS = "git_status"


# Per-tool parameter shapes, checked when a plan is validated.

class WriteFileParams(BaseModel):
    path: str
    content: str


class CreateDirectoryParams(BaseModel):
    path: str


class PackagesParams(BaseModel):
    path: str
    packages: List[str] = Field(min_length=1)
    dev: bool = False


class InstallDependenciesParams(BaseModel):
    path: str


class RunScriptParams(BaseModel):
    path: str
    script: str


TOOL_PARAM_MODELS: Dict[ToolName, Type[BaseModel]] = {
    ToolName.WRITE_FILE: WriteFileParams,
    ToolName.CREATE_DIRECTORY: CreateDirectoryParams,
    ToolName.ADD_PACKAGES: PackagesParams,
    ToolName.REMOVE_PACKAGES: PackagesParams,
    ToolName.UPDATE_PACKAGES: PackagesParams,
    ToolName.INSTALL_DEPENDENCIES: InstallDependenciesParams,
    ToolName.RUN_SCRIPT: RunScriptParams,
}
