from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from protocol.workflow import StepOutcome, utc_now

MessageRole = Literal["user", "assistant"]


class ChatMessage(BaseModel):
    role: MessageRole
    content: str
    reasoning: Optional[str] = None
    log: List[StepOutcome] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
