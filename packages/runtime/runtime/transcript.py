from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from protocol import ChatMessage, MessageRole, StepOutcome


@dataclass
class MessageTranscript:
    """In-memory chat transcript; the default message sink.

    Structure contract:
    - Every message: ChatMessage(role, content, reasoning, log)
    - ``reasoning`` carries the chain of thought, ``log`` the structured
      execution log, so a UI can show or hide them independently of ``content``

    Append order is emission order. Emission happens on the event loop
    thread only, so no lock is held.
    """

    _items: List[ChatMessage] = field(default_factory=list)

    def emit(
        self,
        role: MessageRole,
        content: str,
        reasoning: Optional[str] = None,
        log: Optional[List[StepOutcome]] = None,
    ) -> None:
        self._items.append(
            ChatMessage(role=role, content=content, reasoning=reasoning, log=list(log or []))
        )

    def messages(self) -> List[ChatMessage]:
        return list(self._items)

    def last(self) -> Optional[ChatMessage]:
        return self._items[-1] if self._items else None

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
