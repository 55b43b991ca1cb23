# File: src/chainkit/core/sequence.py

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Iterable, List, Mapping, Tuple

from ..logger import LoggerBot
from .exceptions import SequenceError
from .runnables import Input, Output, Runnable, RunnableConfig, coerce_to_runnable
from .streams import closing_stream, iter_once, wrap_stream_errors

logger = LoggerBot.get_logger()


def _flatten(runnables: Iterable[Runnable]) -> List[Runnable]:
    steps: List[Runnable] = []
    for runnable in runnables:
        if isinstance(runnable, RunnableSequence):
            steps.extend(runnable.steps)
        else:
            steps.append(runnable)
    return steps


class RunnableSequence(Runnable[Input, Output]):
    """
    Represents a sequence of two or more Runnables chained together.
    The output of each step is the input of the next one.

    Build one with `a | b`, `a.pipe(b)` or `Runnable.from_list([a, b, c])`.
    A failing step is reported as a SequenceError carrying the step and its
    position in `steps`.
    """
    def __init__(self, first: Runnable, last: Runnable, middle: Iterable[Runnable] = ()):
        self._first = coerce_to_runnable(first)
        self._middle: Tuple[Runnable, ...] = tuple(coerce_to_runnable(step) for step in middle)
        self._last = coerce_to_runnable(last)

    @classmethod
    def from_runnables(cls, runnables: List[Runnable | Callable | Mapping]) -> RunnableSequence:
        """
        Create a sequence from a list of runnables.
        Nested sequences in the list are kept as single steps.
        """
        steps = [coerce_to_runnable(runnable) for runnable in runnables]
        if len(steps) < 2:
            raise ValueError(
                f"You must provide at least two runnables to create a RunnableSequence. length is {len(steps)}"
            )
        return cls(first=steps[0], middle=steps[1:-1], last=steps[-1])

    @property
    def first(self) -> Runnable:
        return self._first

    @property
    def middle(self) -> Tuple[Runnable, ...]:
        return self._middle

    @property
    def last(self) -> Runnable:
        return self._last

    @property
    def steps(self) -> List[Runnable]:
        return [self._first, *self._middle, self._last]

    async def invoke(self, input: Input, config: RunnableConfig | None = None) -> Output:
        """Invoke the sequence of runnables, stopping at the first failure."""
        result: Any = input
        for index, step in enumerate(self.steps):
            logger.debug(f"-> Sequence step {index} ({step!r}) invoked")
            try:
                result = await step.invoke(result, config)
            except Exception as e:
                error = SequenceError.wrap(step, index, e)
                if error is e:
                    raise
                logger.error(f"Sequence step {index} ({step!r}) failed: {e!r}")
                raise error from e
        return result

    async def stream(self, input: Input, config: RunnableConfig | None = None) -> AsyncIterator[Output]:
        async with closing_stream(self.stream_from_input_stream(iter_once(input), config)) as outputs:
            async for output in outputs:
                yield output

    async def stream_from_input_stream(
        self,
        input_stream: AsyncIterator[Any],
        config: RunnableConfig | None = None,
    ) -> AsyncIterator[Output]:
        """
        Wire every step's output stream into the next step's input stream.
        Nothing runs until the returned stream is consumed.
        """
        stream: AsyncIterator[Any] = input_stream
        for index, step in enumerate(self.steps):
            stream = wrap_stream_errors(step.stream_from_input_stream(stream, config), step, index)

        async with closing_stream(stream):
            async for output in stream:
                yield output

    def pipe(self, next: Runnable[Output, Any] | Callable | Mapping) -> RunnableSequence:
        """Return a new sequence with `next` appended (its steps spliced in if it is a sequence)."""
        return RunnableSequence.from_runnables([*self.steps, *_flatten([coerce_to_runnable(next)])])

    def __repr__(self) -> str:
        return " | ".join(repr(step) for step in self.steps)
