# File: src/chainkit/models/fake.py

import asyncio
from typing import AsyncIterator

from pydantic import BaseModel, Field

from ..core.runnables import RunnableConfig
from ..core.schemas import AIMessage
from .base import BaseChatModel, ChatModelInput

class FakeChatModel(BaseModel, BaseChatModel):
    """
    An in-process chat model for tests and examples.

    Replies with `response`, or echoes the content of the last message when no
    response is set. `stream` splits the reply into chunks of `chunk_size`
    characters, sleeping `sleep` seconds before each one.
    """
    response: str | None = None
    chunk_size: int = Field(default=1, ge=1)
    sleep: float = 0.0

    def _reply(self, input: ChatModelInput) -> str:
        if self.response is not None:
            return self.response
        messages = self.convert_input(input)
        return messages[-1].content if messages else ""

    async def invoke(self, input: ChatModelInput, config: RunnableConfig | None = None) -> AIMessage:
        if self.sleep:
            await asyncio.sleep(self.sleep)
        return AIMessage(content=self._reply(input), finish_reason="stop")

    async def stream(self, input: ChatModelInput, config: RunnableConfig | None = None) -> AsyncIterator[AIMessage]:
        text = self._reply(input)
        for start in range(0, len(text), self.chunk_size):
            if self.sleep:
                await asyncio.sleep(self.sleep)
            end = start + self.chunk_size
            yield AIMessage(content=text[start:end], finish_reason="stop" if end >= len(text) else None)
