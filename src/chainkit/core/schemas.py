# File: src/chainkit/core/schemas.py

from typing import Literal
from pydantic import BaseModel

class BaseMessage(BaseModel):
    """The base class for a message in a chat conversation."""
    content: str
    role: str

    def __str__(self):
        return self.content

class HumanMessage(BaseMessage):
    """A message from the human user."""
    role: Literal["user"] = "user"

class AIMessage(BaseMessage):
    """
    A message from the AI.
    Streaming models emit partial AIMessages; `concat` joins two of them.
    """
    role: Literal["assistant"] = "assistant"
    finish_reason: str | None = None

    def concat(self, other: "AIMessage") -> "AIMessage":
        return AIMessage(
            content=self.content + other.content,
            finish_reason=other.finish_reason or self.finish_reason,
        )

class SystemMessage(BaseMessage):
    """A message to set the persona or context for the AI."""
    role: Literal["system"] = "system"

# A union type to allow for any of the message types
MessageType = HumanMessage | AIMessage | SystemMessage
