from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from protocol import MessageRole, StepOutcome

logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    def emit(
        self,
        role: MessageRole,
        content: str,
        reasoning: Optional[str] = None,
        log: Optional[List[StepOutcome]] = None,
    ) -> None:
        ...


class LivenessFlag:
    """Stays true until the surface that started a command goes away."""

    def __init__(self) -> None:
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    def close(self) -> None:
        self._alive = False


@dataclass
class CommandContext:
    """Capabilities handed to every command: a message sink and a liveness check.

    Once the liveness flag is closed, ``emit`` drops messages silently and
    callers must not touch shared state.
    """

    sink: MessageSink
    liveness: LivenessFlag = field(default_factory=LivenessFlag)

    def is_live(self) -> bool:
        return self.liveness.alive

    def emit(
        self,
        role: MessageRole,
        content: str,
        reasoning: Optional[str] = None,
        log: Optional[List[StepOutcome]] = None,
    ) -> None:
        if not self.is_live():
            logger.debug("dropping %s message, context no longer live", role)
            return
        self.sink.emit(role, content, reasoning, log)
