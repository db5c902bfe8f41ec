"""Chat worker: configuration and the per-session chat orchestrator."""

from chat_worker.config import ChatConfig
from chat_worker.orchestrator import ChatOrchestrator, build_mcp_orchestrator

__all__ = ["ChatConfig", "ChatOrchestrator", "build_mcp_orchestrator"]
