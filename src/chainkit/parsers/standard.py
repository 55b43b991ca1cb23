# File: src/chainkit/parsers/standard.py

import json
from typing import Any, AsyncIterator, Type, TypeVar
from pydantic import BaseModel, ValidationError

from ..core.exceptions import OutputParserError
from ..core.runnables import RunnableConfig
from ..core.streams import closing_stream
from .base import BaseCumulativeOutputParser, BaseOutputParser

# For Pydantic parser
T = TypeVar("T", bound=BaseModel)

# ---- JSON Helper Functions ---- #

def extract_first_json_block(text: str) -> str | None:
    """
    Finds the first balanced {...} or [...] JSON object in text.
    Returns the substring or None if not found.
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None

    start = min(starts)
    start_char = text[start]
    end_char = "}" if start_char == "{" else "]"

    depth = 0
    for i in range(start, len(text)):
        c = text[i]
        if c == start_char:
            depth += 1
        elif c == end_char:
            depth -= 1
            if depth == 0:
                return text[start:i+1]
    return None


def safe_load_json(maybe_json: str) -> Any:
    """
    Safely loads JSON, even if the AI response has stray text around it.
    """
    try:
        return json.loads(maybe_json)
    except json.JSONDecodeError:
        pass

    block = extract_first_json_block(maybe_json)
    if not block:
        raise ValueError("No JSON object found in model output.")

    # Clean up curly quotes and backticks
    cleaned = (
        block.replace("“", "\"")
             .replace("”", "\"")
             .replace("’", "'")
             .replace("`", "")
    )
    return json.loads(cleaned)


class StrOutputParser(BaseOutputParser[str]):
    """
    The simplest parser, just returns the string content.
    It streams natively: every incoming chunk is emitted as text right away.
    """
    def parse(self, text: str) -> str:
        return text

    async def stream_from_input_stream(
        self,
        input_stream: AsyncIterator[Any],
        config: RunnableConfig | None = None,
    ) -> AsyncIterator[str]:
        async with closing_stream(input_stream):
            async for chunk in input_stream:
                yield self.parse_result(chunk)


class StringChatConcatOutputParser(BaseCumulativeOutputParser[str]):
    """
    Joins a stream of partial chat messages into one message and returns its text.
    """
    def parse(self, text: str) -> str:
        return text


class JsonOutputParser(BaseCumulativeOutputParser[Any]):
    """Parses a JSON string from the LLM output into a Python object."""
    def parse(self, text: str) -> Any:
        # The LLM might wrap the JSON in markdown code blocks
        clean_text = text.strip().removeprefix("```json").removeprefix("```").removesuffix("```").strip()
        try:
            return safe_load_json(clean_text)
        except ValueError as e:
            raise OutputParserError(f"Failed to parse JSON: {e}\n\nGot text: {text}", llm_output=text) from e


class PydanticOutputParser(BaseCumulativeOutputParser[T]):
    """
    Parses LLM output into a Pydantic model instance.
    """
    pydantic_model: Type[T]

    def __init__(self, *, pydantic_model: Type[T]):
        super().__init__()
        self.pydantic_model = pydantic_model

    def get_format_instructions(self) -> str:
        """Returns instructions for the LLM on how to format its output."""
        schema = self.pydantic_model.model_json_schema()

        # Reduced schema for brevity in the prompt
        reduced_schema = {
            "title": schema.get("title", ""),
            "description": schema.get("description", ""),
            "properties": schema.get("properties", {}),
            "required": schema.get("required", []),
        }

        return (
            "Please respond with a JSON object formatted according to the following schema:\n"
            "```json\n"
            f"{json.dumps(reduced_schema, indent=2)}\n"
            "```"
        )

    def parse(self, text: str) -> T:
        """Parses the text into an instance of the Pydantic model."""
        json_obj = JsonOutputParser().parse(text)
        try:
            return self.pydantic_model.model_validate(json_obj)
        except ValidationError as e:
            raise OutputParserError(
                f"Failed to parse LLM output into Pydantic model {self.pydantic_model.__name__}.\n"
                f"Got error: {e}\nGot text: {text}",
                llm_output=text,
            ) from e
