# File: src/chainkit/__init__.py

"""
chainkit - composable async Runnables.

Prompts, chat models and parsers all implement the same Runnable interface, so
they can be chained with `|` into a RunnableSequence or fanned out with a
RunnableMap, then either awaited with `invoke` or consumed incrementally with
`stream` / `stream_from_input_stream`.

Example:
    chain = ChatPromptTemplate.from_template("Tell me a joke about {topic}") | ChatOpenAI() | StrOutputParser()
    print(await chain.invoke({"topic": "bears"}))
"""

from .core.exceptions import OutputParserError, SequenceError
from .core.map import RunnableMap
from .core.runnables import Runnable, RunnableConfig, RunnableLambda, RunnablePassthrough
from .core.schemas import AIMessage, BaseMessage, HumanMessage, MessageType, SystemMessage
from .core.sequence import RunnableSequence
from .core.streams import reduce_stream
from .models.base import BaseChatModel
from .models.fake import FakeChatModel
from .models.openai import ChatOpenAI
from .parsers.base import BaseCumulativeOutputParser, BaseOutputParser
from .parsers.standard import (
    JsonOutputParser,
    PydanticOutputParser,
    StrOutputParser,
    StringChatConcatOutputParser,
)
from .prompts.base import BasePromptTemplate
from .prompts.templates import ChatPromptTemplate, MessagesPlaceholder, PromptTemplate

__all__ = [
    "AIMessage",
    "BaseChatModel",
    "BaseCumulativeOutputParser",
    "BaseMessage",
    "BaseOutputParser",
    "BasePromptTemplate",
    "ChatOpenAI",
    "ChatPromptTemplate",
    "FakeChatModel",
    "HumanMessage",
    "JsonOutputParser",
    "MessageType",
    "MessagesPlaceholder",
    "OutputParserError",
    "PromptTemplate",
    "PydanticOutputParser",
    "Runnable",
    "RunnableConfig",
    "RunnableLambda",
    "RunnableMap",
    "RunnablePassthrough",
    "RunnableSequence",
    "SequenceError",
    "StrOutputParser",
    "StringChatConcatOutputParser",
    "SystemMessage",
    "reduce_stream",
]
