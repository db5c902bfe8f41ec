from workflows.base import BaseCommand, ModificationWorkflow, build_commit_message
from workflows.create_project import CreateProjectCommand, CreateProjectParams
from workflows.modify_project import ModifyProjectCommand, ModifyProjectParams
from workflows.modify_repository import ModifyRepositoryCommand, ModifyRepositoryParams

__all__ = [
    "BaseCommand",
    "CreateProjectCommand",
    "CreateProjectParams",
    "ModificationWorkflow",
    "ModifyProjectCommand",
    "ModifyProjectParams",
    "ModifyRepositoryCommand",
    "ModifyRepositoryParams",
    "build_commit_message",
]
