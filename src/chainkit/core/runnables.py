# File: src/chainkit/core/runnables.py

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Dict, Generic, List, Mapping, TypeVar

from pydantic import BaseModel, Field

from .streams import EMPTY, closing_stream, combine_chunks, reduce_stream

if TYPE_CHECKING:
    from .map import RunnableMap
    from .sequence import RunnableSequence

# Using TypeVars for better type hinting of inputs and outputs
Input = TypeVar("Input")
Output = TypeVar("Output")


class RunnableConfig(BaseModel):
    """A class to hold runtime configuration for a Runnable."""
    run_id: str | None = None
    tags: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    max_concurrency: int = Field(default=5, ge=1)


def ensure_config(config: RunnableConfig | None) -> RunnableConfig:
    return config if config is not None else RunnableConfig()


class Runnable(Generic[Input, Output], ABC):
    """
    The core interface for all components in the framework.
    All components (prompts, models, parsers, etc.) implement this interface,
    which allows them to be chained together in a standardized way.

    A Runnable is a description of a step and holds no per-call state, so one
    instance can serve any number of concurrent calls.
    """

    @abstractmethod
    async def invoke(self, input: Input, config: RunnableConfig | None = None) -> Output:
        """Execute the component with a single input."""

    async def stream(self, input: Input, config: RunnableConfig | None = None) -> AsyncIterator[Output]:
        """
        Stream the output of the component in chunks.

        Components that cannot produce partial output emit the result of
        `invoke` as a single chunk. Override this to stream natively.
        """
        yield await self.invoke(input, config)

    async def stream_from_input_stream(
        self,
        input_stream: AsyncIterator[Any],
        config: RunnableConfig | None = None,
    ) -> AsyncIterator[Output]:
        """
        Stream the output of the component for an incoming stream of input chunks.

        By default the whole input stream is drained and combined into one
        input (see `combine_chunks`), which is then handed to `stream`. An empty
        input stream produces no output. Override this if the component can
        start producing output from partial input.
        """
        input = await reduce_stream(input_stream, combine_chunks, default=EMPTY)
        if input is EMPTY:
            return
        async with closing_stream(self.stream(input, config)) as outputs:
            async for output in outputs:
                yield output

    async def batch(self, inputs: List[Input], config: RunnableConfig | None = None) -> List[Output]:
        """
        Invoke the component on a list of inputs concurrently, keeping input order.
        The first failure is raised and the invocations still running are cancelled.
        """
        config = ensure_config(config)
        semaphore = asyncio.Semaphore(config.max_concurrency)

        async def _invoke(item: Input) -> Output:
            async with semaphore:
                return await self.invoke(item, config)

        if not inputs:
            return []

        tasks = [asyncio.create_task(_invoke(item)) for item in inputs]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
            for task in tasks:
                if task in done and not task.cancelled() and task.exception() is not None:
                    raise task.exception()
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        return [task.result() for task in tasks]

    def pipe(self, next: Runnable[Output, Any] | Callable | Mapping) -> RunnableSequence:
        """
        Chain `next` after this runnable.
        If `next` is itself a sequence its steps are spliced in, so the result stays flat.
        """
        from .sequence import RunnableSequence, _flatten
        return RunnableSequence.from_runnables([self, *_flatten([coerce_to_runnable(next)])])

    def __or__(self, other: Runnable[Output, Any] | Callable | Mapping) -> RunnableSequence:
        """
        The pipe operator (|) for chaining Runnables together.
        Example: prompt | model | parser
        """
        return self.pipe(other)

    def __ror__(self, other: Runnable[Any, Input] | Callable | Mapping) -> RunnableSequence:
        return coerce_to_runnable(other).pipe(self)

    def get_name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.get_name()}()"

    @staticmethod
    def from_list(runnables: List[Runnable]) -> RunnableSequence:
        """Build a sequence that runs `runnables` one after another."""
        from .sequence import RunnableSequence
        return RunnableSequence.from_runnables(runnables)

    @staticmethod
    def from_map(steps: Mapping[str, Runnable | Callable | Mapping], combine_streams: bool = True) -> RunnableMap:
        """Build a map that runs every branch of `steps` on the same input."""
        from .map import RunnableMap
        return RunnableMap(steps, combine_streams=combine_streams)

    @staticmethod
    def from_function(func: Callable[[Any], Any], name: str | None = None) -> RunnableLambda:
        return RunnableLambda(func, name=name)


class RunnableLambda(Runnable[Input, Output]):
    """
    Wraps a plain function (sync or async) so it can be used as a step.
    """
    def __init__(self, func: Callable[[Input], Output], name: str | None = None):
        if not callable(func):
            raise TypeError(f"RunnableLambda expects a callable, got {type(func).__name__}")
        self.func = func
        self.name = name or getattr(func, "__name__", "lambda")

    async def invoke(self, input: Input, config: RunnableConfig | None = None) -> Output:
        result = self.func(input)
        if inspect.isawaitable(result):
            result = await result
        return result

    def get_name(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"RunnableLambda({self.name})"


class RunnablePassthrough(Runnable[Input, Input]):
    """
    A special Runnable that simply passes its input through.
    Useful for branching chains.
    """
    async def invoke(self, input: Input, config: RunnableConfig | None = None) -> Input:
        return input

    async def stream_from_input_stream(
        self,
        input_stream: AsyncIterator[Input],
        config: RunnableConfig | None = None,
    ) -> AsyncIterator[Input]:
        async with closing_stream(input_stream):
            async for chunk in input_stream:
                yield chunk


def coerce_to_runnable(thing: Runnable | Callable | Mapping) -> Runnable:
    """Turn a runnable, a dict of steps or a function into a Runnable."""
    if isinstance(thing, Runnable):
        return thing
    if isinstance(thing, Mapping):
        from .map import RunnableMap
        return RunnableMap(thing)
    if callable(thing):
        return RunnableLambda(thing)
    raise TypeError(f"Expected a Runnable, callable or dict, got {type(thing).__name__}")
