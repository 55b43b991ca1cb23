# File: src/chainkit/models/base.py

from abc import abstractmethod
from typing import List, Sequence

from ..core.runnables import Runnable, RunnableConfig
from ..core.schemas import AIMessage, BaseMessage, HumanMessage, MessageType

ChatModelInput = Sequence[MessageType] | str

class BaseChatModel(Runnable[ChatModelInput, AIMessage]):
    """
    Abstract base class for a chat model.
    It standardizes the interface for interacting with any chat-based LLM.

    Models that can stream tokens override `stream` and yield partial
    AIMessages, which downstream steps join back together with `AIMessage.concat`.
    """

    @abstractmethod
    async def invoke(self, input: ChatModelInput, config: RunnableConfig | None = None) -> AIMessage:
        """
        Takes a list of messages (or a plain string) and returns an AI message.
        """
        pass

    @staticmethod
    def convert_input(input: ChatModelInput) -> List[BaseMessage]:
        """Normalise the accepted input shapes into a list of messages."""
        if isinstance(input, str):
            return [HumanMessage(content=input)]
        messages = []
        for m in input:
            if isinstance(m, BaseMessage):
                messages.append(m)
            elif isinstance(m, str):
                messages.append(HumanMessage(content=m))
            else:
                raise ValueError(f"Unsupported message type: {m!r}")
        return messages
