# File: src/chainkit/prompts/templates.py

from typing import Any, List, Sequence, Tuple
from pydantic import BaseModel

from .base import BasePromptTemplate, format_template, get_template_variables
from ..core.schemas import MessageType, HumanMessage, AIMessage, SystemMessage

_ROLE_TO_MESSAGE = {
    "system": SystemMessage,
    "user": HumanMessage,
    "human": HumanMessage,
    "assistant": AIMessage,
    "ai": AIMessage,
}

class MessagesPlaceholder(BaseModel):
    """A placeholder for a list of messages in a prompt template."""
    variable_name: str

class PromptTemplate(BaseModel, BasePromptTemplate[str]):
    """
    A plain string template using str.format placeholders.
    """
    template: str

    @classmethod
    def from_template(cls, template: str) -> "PromptTemplate":
        return cls(template=template)

    @property
    def input_variables(self) -> List[str]:
        return get_template_variables(self.template)

    def format_prompt(self, **kwargs: Any) -> str:
        return format_template(self.template, kwargs)

class ChatPromptTemplate(BaseModel, BasePromptTemplate[List[MessageType]]):
    """
    A template for creating a list of chat messages.
    """
    messages: List[MessageType | MessagesPlaceholder]

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def from_template(cls, template: str) -> "ChatPromptTemplate":
        """A template with a single human message."""
        return cls(messages=[HumanMessage(content=template)])

    @classmethod
    def from_messages(cls, messages: Sequence[Tuple[str, str] | MessageType | MessagesPlaceholder]) -> "ChatPromptTemplate":
        """
        Build a template from messages or `(role, template)` pairs.
        Example: ChatPromptTemplate.from_messages([("system", "You are {persona}."), ("user", "{question}")])
        """
        built: List[MessageType | MessagesPlaceholder] = []
        for message in messages:
            if isinstance(message, tuple):
                role, content = message
                if role not in _ROLE_TO_MESSAGE:
                    raise ValueError(f"Unknown message role {role!r}. Expected one of {sorted(_ROLE_TO_MESSAGE)}")
                built.append(_ROLE_TO_MESSAGE[role](content=content))
            else:
                built.append(message)
        return cls(messages=built)

    @property
    def input_variables(self) -> List[str]:
        variables: List[str] = []
        for msg_template in self.messages:
            names = (
                [msg_template.variable_name]
                if isinstance(msg_template, MessagesPlaceholder)
                else get_template_variables(msg_template.content)
            )
            variables.extend(name for name in names if name not in variables)
        return variables

    def format_prompt(self, **kwargs: Any) -> List[MessageType]:
        formatted_messages: List[MessageType] = []
        for msg_template in self.messages:
            if isinstance(msg_template, MessagesPlaceholder):
                history = kwargs.get(msg_template.variable_name, [])
                formatted_messages.extend(history)
            else:
                formatted_content = format_template(msg_template.content, kwargs)
                formatted_messages.append(type(msg_template)(content=formatted_content))
        return formatted_messages
