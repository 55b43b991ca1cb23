# File: src/chainkit/parsers/base.py

from abc import abstractmethod
from typing import Any, AsyncIterator, Generic, TypeVar

from ..core.exceptions import OutputParserError
from ..core.runnables import Runnable, RunnableConfig
from ..core.schemas import BaseMessage
from ..core.streams import EMPTY, combine_chunks, reduce_stream

# The type of the parsed output
Output = TypeVar("Output")

class BaseOutputParser(Runnable[BaseMessage | str, Output], Generic[Output]):
    """
    Abstract base class for parsing the output of a language model.
    It takes an AI message or a string and returns a structured output.
    """

    @abstractmethod
    def parse(self, text: str) -> Output:
        """Parse the raw text output from the LLM."""
        pass

    def parse_result(self, result: BaseMessage | str) -> Output:
        text_to_parse = result.content if isinstance(result, BaseMessage) else result
        return self.parse(text_to_parse)

    async def invoke(self, input: BaseMessage | str, config: RunnableConfig | None = None) -> Output:
        return self.parse_result(input)

class BaseCumulativeOutputParser(BaseOutputParser[Output], Generic[Output]):
    """
    A parser that can only work on a complete model output.

    When streaming, every partial result is folded into one with `concat`
    as it arrives, and `parse_result` runs once on the combined result after
    the input stream ends. Exactly one value is emitted.
    """

    def concat(self, previous: Any, current: Any) -> Any:
        """Join two consecutive partial results. Must be associative."""
        return combine_chunks(previous, current)

    async def stream_from_input_stream(
        self,
        input_stream: AsyncIterator[Any],
        config: RunnableConfig | None = None,
    ) -> AsyncIterator[Output]:
        combined = await reduce_stream(input_stream, self.concat, default=EMPTY)
        if combined is EMPTY:
            raise OutputParserError(f"{type(self).__name__} received an empty stream, nothing to parse.")
        yield self.parse_result(combined)
