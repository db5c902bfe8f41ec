"""
Chat Orchestrator - From one chat message to one command

    message → RequestClassifier → command by intent → CommandResult
            → at most one atomic state transition per outcome

Commands never write session state; the orchestrator does, through the
AtomicStateCoordinator, and only while the session is live.

One message per session is handled at a time: a message arriving while
another is in flight is ignored (busy_policy="ignore") or queued behind it
on the session's lane (busy_policy="queue").
"""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional

import httpx

from planner import RequestClassifier, is_explicit_new_project
from protocol import ChatMessage, Classification, CommandResult, Intent, SessionState
from runtime.collaborators import (
    AIProjectCreator,
    Analyzer,
    CreateProjectOptions,
    FallbackProjectCreator,
    Planner,
    VersionControlSink,
)
from runtime.context import CommandContext, LivenessFlag
from runtime.lane_queue import LaneQueue
from runtime.mcp_adapters import (
    McpAnalyzer,
    McpFallbackCreator,
    McpPlanner,
    McpProjectCreator,
    McpVersionControl,
    register_mcp_tools,
)
from runtime.mcp_client import McpToolClient
from runtime.tool_registry import ToolRegistry
from runtime.transcript import MessageTranscript
from session_state import AtomicStateCoordinator
from workflows import (
    CreateProjectCommand,
    CreateProjectParams,
    ModifyProjectCommand,
    ModifyProjectParams,
    ModifyRepositoryCommand,
    ModifyRepositoryParams,
)

from chat_worker.config import ChatConfig

logger = logging.getLogger(__name__)


class ChatOrchestrator:
    def __init__(
        self,
        coordinator: AtomicStateCoordinator,
        analyzer: Analyzer,
        planner: Planner,
        tools: ToolRegistry,
        vcs: VersionControlSink,
        creator: AIProjectCreator,
        fallback: FallbackProjectCreator,
        config: Optional[ChatConfig] = None,
        classifier: Optional[RequestClassifier] = None,
        messages: Optional[MessageTranscript] = None,
        lanes: Optional[LaneQueue] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._config = config or ChatConfig()
        self._coordinator = coordinator
        self._classifier = classifier or RequestClassifier()
        self._messages = messages if messages is not None else MessageTranscript()
        self._session_id = session_id or uuid.uuid4().hex
        self._liveness = LivenessFlag()
        self._context = CommandContext(sink=self._messages, liveness=self._liveness)
        self._owns_lanes = lanes is None
        self._lanes = lanes or LaneQueue(max_concurrency=self._config.lane_max_concurrency)
        self._in_flight = False

        self._create_project = CreateProjectCommand(
            self._context,
            creator,
            fallback,
            options=CreateProjectOptions(
                fast_mode=self._config.fast_mode, ai_provider=self._config.ai_provider
            ),
            fallback_project_root=self._config.fallback_project_root,
        )
        self._modify_project = ModifyProjectCommand(self._context, analyzer, planner, tools, vcs)
        self._modify_repository = ModifyRepositoryCommand(
            self._context,
            analyzer,
            planner,
            tools,
            vcs,
            repository_workdir=self._config.repository_workdir,
        )

    # ==================== Public surface ====================

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def messages(self) -> List[ChatMessage]:
        return self._messages.messages()

    @property
    def is_loading(self) -> bool:
        return self._in_flight

    async def send_message(self, content: str) -> Optional[CommandResult]:
        """
        Handle one chat message end to end.

        Returns:
            The command result, or None when the message was ignored because
            another one is still in flight or the session is closed
        """
        if not self._liveness.alive:
            logger.info("session %s closed, ignoring message", self._session_id)
            return None
        if self._config.busy_policy == "queue":
            return await self._lanes.submit(self._session_id, lambda: self._handle(content))
        if self._in_flight:
            logger.info("session %s busy, ignoring message", self._session_id)
            return None
        return await self._handle(content)

    def clear_chat(self) -> None:
        self._messages.clear()
        self._coordinator.set_active_project(None)

    def close(self) -> None:
        """Mark the session gone; in-flight commands drop their results."""
        self._liveness.close()

    async def aclose(self) -> None:
        self.close()
        if self._owns_lanes:
            await self._lanes.close()

    # ==================== Dispatch ====================

    async def _handle(self, content: str) -> Optional[CommandResult]:
        if not self._liveness.alive:
            logger.info("session %s closed, dropping queued message", self._session_id)
            return None
        self._in_flight = True
        try:
            self._context.emit("user", content)
            snapshot = self._coordinator.snapshot
            classification = self._classifier.classify(
                content,
                snapshot.selected_repository is not None,
                snapshot.active_project is not None,
            )
            logger.info(
                "session %s classified as %s (%.2f): %s",
                self._session_id,
                classification.intent.value,
                classification.confidence,
                classification.reason,
            )
            return await self._dispatch(content, classification, snapshot)
        except Exception as exc:
            logger.exception("session %s failed to handle message", self._session_id)
            message = f"Sorry, I encountered an error: {str(exc) or type(exc).__name__}"
            self._context.emit("assistant", message)
            return CommandResult(success=False, message=message)
        finally:
            self._in_flight = False

    async def _dispatch(
        self, content: str, classification: Classification, snapshot: SessionState
    ) -> CommandResult:
        intent = classification.intent
        repository = snapshot.selected_repository
        project = snapshot.active_project

        if intent == Intent.REPOSITORY_MODIFICATION and repository is not None:
            result = await self._modify_repository.execute(
                ModifyRepositoryParams(content=content, repository=repository)
            )
            if result.success and self._liveness.alive:
                self._coordinator.coordinated_cache_refresh()
            return result

        if intent == Intent.PROJECT_MODIFICATION and project is not None:
            return await self._modify_project.execute(
                ModifyProjectParams(content=content, project=project)
            )

        if intent != Intent.NEW_PROJECT:
            logger.info("no %s context left, creating a new project instead", intent.value)
        return await self._run_create_project(content, is_explicit_new_project(classification))

    async def _run_create_project(self, content: str, enter_new_project_mode: bool) -> CommandResult:
        if enter_new_project_mode and self._liveness.alive:
            self._coordinator.start_new_project_mode()

        result = await self._create_project.execute(CreateProjectParams(content=content))

        created = result.created_project
        if created is None or not self._liveness.alive:
            return result
        if created.repository_url:
            self._coordinator.complete_project_creation(
                repository_url=created.repository_url,
                name=created.repository_name,
                is_new_project=self._coordinator.snapshot.is_creating_new_project,
                project=created,
            )
        else:
            self._coordinator.set_active_project(created)
        return result


def build_mcp_orchestrator(
    config: Optional[ChatConfig] = None,
    coordinator: Optional[AtomicStateCoordinator] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **kwargs,
) -> ChatOrchestrator:
    """Orchestrator whose collaborators all go through the JSON tool endpoint."""
    config = config or ChatConfig.from_env()
    client = McpToolClient(
        config.mcp_base_url, timeout_seconds=config.mcp_timeout_seconds, transport=transport
    )
    tools = ToolRegistry()
    register_mcp_tools(tools, client)
    return ChatOrchestrator(
        coordinator=coordinator or AtomicStateCoordinator(),
        analyzer=McpAnalyzer(client),
        planner=McpPlanner(client),
        tools=tools,
        vcs=McpVersionControl(client),
        creator=McpProjectCreator(client),
        fallback=McpFallbackCreator(client),
        config=config,
        **kwargs,
    )
