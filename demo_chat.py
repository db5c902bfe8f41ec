"""
Chat Workflow Demo

Demonstrates:
- Request classification (deterministic keyword rules)
- Project creation with AI failure → fallback
- Project modification with a failing step (no fail-fast)
- Atomic session state transitions
"""

from pathlib import Path
import asyncio
import sys

# Add packages to path
repo_root = Path(__file__).parent
for path in [
    repo_root / "packages",
    repo_root / "packages" / "protocol",
    repo_root / "packages" / "runtime",
    repo_root / "packages" / "workflows",
    repo_root / "packages" / "session_state",
    repo_root / "apps" / "chat-worker",
]:
    sys.path.insert(0, str(path))

from chat_worker import ChatConfig, ChatOrchestrator
from protocol import (
    AnalysisResponse,
    CreatedProject,
    ExecutedStep,
    FallbackSetupResponse,
    PlanResponse,
    ProjectAnalysis,
    ProjectCreationResponse,
    ToolName,
    VcsResponse,
    WorkflowStep,
)
from runtime import ToolRegistry
from session_state import AtomicStateCoordinator


class DemoAnalyzer:
    async def analyze(self, path, request_text):
        return AnalysisResponse(
            success=True,
            analysis=ProjectAnalysis(
                project_type="react", framework="vite", dependencies={"react": "18.2.0"}
            ),
        )


class DemoPlanner:
    async def plan(self, path, request_text, analysis, repository=None):
        return PlanResponse(
            success=True,
            steps=[
                WorkflowStep(step=1, action="install", tool=ToolName.ADD_PACKAGES,
                             params={"path": path, "packages": ["jotai"]},
                             description="Install jotai"),
                WorkflowStep(step=2, action="write", tool=ToolName.WRITE_FILE,
                             params={"path": "src/atoms.ts", "content": "export {}"},
                             description="Create atoms file"),
                WorkflowStep(step=3, action="format", tool=ToolName.FORMAT_CODE,
                             params={"path": path},
                             description="Format sources"),
            ],
        )


class DemoVcs:
    async def commit(self, path, message):
        return VcsResponse(success=True, message=f"committed in {path}")

    async def push(self, path, repository):
        return VcsResponse(success=True, message=f"pushed to {repository.full_name}")


class DemoCreator:
    def __init__(self):
        self.calls = 0

    async def create_project(self, description, options):
        self.calls += 1
        if self.calls == 1:
            return ProjectCreationResponse(success=False, message="AI provider quota exceeded")
        return ProjectCreationResponse(
            success=True,
            project=CreatedProject(
                name="todo-app",
                path="/tmp/projects/todo-app",
                type="react",
                confidence=0.9,
                reasoning="A todo list with login maps to a React SPA",
                repository_url="https://github.com/demo/todo-app",
                total_steps=1,
                execution_steps=[
                    ExecutedStep(step=1, action="scaffold", tool="setup_project_from_template", success=True)
                ],
                llm_used="demo",
            ),
        )


class DemoFallback:
    async def setup_project(self, description, project_path, fast_mode=False):
        return FallbackSetupResponse(
            success=True,
            message=f"Basic project setup planned at {project_path}",
            planned_actions=["create package.json", "create src/main.tsx"],
        )


def _format_tool_failure(params):
    raise RuntimeError("prettier not installed")


async def demo_chat():
    """Run a short conversation against stub collaborators."""
    print("\n" + "=" * 70)
    print("Chat Workflow Demo")
    print("=" * 70)

    tools = ToolRegistry()
    tools.register(ToolName.ADD_PACKAGES, lambda params: {"installed": params["packages"]})
    tools.register(ToolName.WRITE_FILE, lambda params: {"written": params["path"]})
    tools.register(ToolName.FORMAT_CODE, _format_tool_failure)

    coordinator = AtomicStateCoordinator()
    coordinator.subscribe(
        lambda state: print(
            f"  [state] repository={state.selected_repository and state.selected_repository.name}"
            f" creating={state.is_creating_new_project}"
            f" project={state.active_project and state.active_project.name}"
            f" marker={state.newly_created_marker}"
        )
    )
    orchestrator = ChatOrchestrator(
        coordinator=coordinator,
        analyzer=DemoAnalyzer(),
        planner=DemoPlanner(),
        tools=tools,
        vcs=DemoVcs(),
        creator=DemoCreator(),
        fallback=DemoFallback(),
        config=ChatConfig(),
    )

    for text in [
        "create new project with authentication",
        "build app: todo list with login",
        "add jotai",
    ]:
        print(f"\n{'-' * 70}")
        print(f"User: {text}")
        print("-" * 70)
        seen = len(orchestrator.messages)
        result = await orchestrator.send_message(text)
        for message in orchestrator.messages[seen + 1:]:
            print(f"\nAssistant:\n{message.content}")
            for entry in message.log:
                status = "ok" if entry.success else f"failed ({entry.error})"
                print(f"    - [{entry.kind.value}] {entry.tool}: {status}")
        print(f"\n  → success={result.success} steps={result.success_count}/{result.total_steps}")

    print("\n" + "=" * 70)
    print("Demo complete")
    print("=" * 70)


if __name__ == "__main__":
    asyncio.run(demo_chat())
