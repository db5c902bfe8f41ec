from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

BUSY_POLICIES = ("ignore", "queue")
AI_PROVIDERS = ("openai", "gemini")


def _read_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"0", "false", "off", "no"}:
        return False
    if normalized in {"1", "true", "on", "yes"}:
        return True
    return default


def _read_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("ignoring invalid %s=%r", name, raw)
        return default
    return value if value >= 1 else default


def _read_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        logger.warning("ignoring invalid %s=%r", name, raw)
        return default
    return value if value > 0 else default


def _read_choice_env(name: str, choices: tuple, default: Optional[str]) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in choices:
        return normalized
    if normalized:
        logger.warning("ignoring invalid %s=%r", name, raw)
    return default


@dataclass(frozen=True)
class ChatConfig:
    busy_policy: str = "ignore"
    fast_mode: bool = False
    ai_provider: Optional[str] = None
    repository_workdir: str = "/tmp/repositories"
    fallback_project_root: str = "/tmp/projects"
    mcp_base_url: str = "http://localhost:3000/api/mcp"
    mcp_timeout_seconds: float = 30.0
    lane_max_concurrency: int = 4

    @classmethod
    def from_env(cls) -> "ChatConfig":
        return cls(
            busy_policy=_read_choice_env("CHAT_BUSY_POLICY", BUSY_POLICIES, "ignore"),
            fast_mode=_read_bool_env("CHAT_FAST_MODE", False),
            ai_provider=_read_choice_env("CHAT_AI_PROVIDER", AI_PROVIDERS, None),
            repository_workdir=os.getenv("REPOSITORY_WORKDIR", "/tmp/repositories"),
            fallback_project_root=os.getenv("FALLBACK_PROJECT_ROOT", "/tmp/projects"),
            mcp_base_url=os.getenv("MCP_BASE_URL", "http://localhost:3000/api/mcp"),
            mcp_timeout_seconds=_read_float_env("MCP_TIMEOUT_SECONDS", 30.0),
            lane_max_concurrency=_read_int_env("CHAT_LANE_MAX_CONCURRENCY", 4),
        )
