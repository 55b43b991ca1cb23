# File: src/chainkit/models/openai.py

from typing import Any, AsyncIterator, Dict, List

from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from ..config import get_settings
from ..core.runnables import RunnableConfig
from ..core.schemas import AIMessage
from ..logger import LoggerBot
from .base import BaseChatModel, ChatModelInput

logger = LoggerBot.get_logger()

# ---- ChatOpenAI Wrapper Class ---- #

class ChatOpenAI(BaseModel, BaseChatModel):
    """
    A lightweight wrapper around OpenAI's chat completions API that fits into the framework.
    `stream` yields one partial AIMessage per token delta.
    """
    model_name: str = Field(default_factory=lambda: get_settings().default_model)
    temperature: float = 0.5
    api_key: str | None = Field(default=None, repr=False)
    max_completion_tokens: int = 2000
    client: Any = Field(default=None, exclude=True, repr=False)

    model_config = {
        "arbitrary_types_allowed": True,
        "protected_namespaces": ()
    }

    def __init__(self, **data):
        super().__init__(**data)
        if self.client is None:
            self.client = AsyncOpenAI(api_key=self.api_key or get_settings().openai_api_key)

    def _format_messages(self, input: ChatModelInput) -> List[Dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in self.convert_input(input)]

    def _request_kwargs(self, input: ChatModelInput) -> Dict[str, Any]:
        return dict(
            model=self.model_name,
            messages=self._format_messages(input),
            temperature=self.temperature,
            max_tokens=self.max_completion_tokens,
        )

    async def invoke(self, input: ChatModelInput, config: RunnableConfig | None = None) -> AIMessage:
        """
        Send a list of messages to the chat model and return an AIMessage.
        """
        logger.debug(f"-> ChatOpenAI invoked (model={self.model_name})")
        response = await self.client.chat.completions.create(**self._request_kwargs(input))
        choice = response.choices[0]
        return AIMessage(content=choice.message.content or "", finish_reason=choice.finish_reason)

    async def stream(self, input: ChatModelInput, config: RunnableConfig | None = None) -> AsyncIterator[AIMessage]:
        logger.debug(f"-> ChatOpenAI streaming (model={self.model_name})")
        response = await self.client.chat.completions.create(**self._request_kwargs(input), stream=True)
        async for chunk in response:
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            content = choice.delta.content or ""
            if content or choice.finish_reason:
                yield AIMessage(content=content, finish_reason=choice.finish_reason)
