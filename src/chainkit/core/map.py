# File: src/chainkit/core/map.py

from __future__ import annotations

import asyncio
from types import MappingProxyType
from typing import Any, AsyncIterator, Callable, Dict, Mapping

from ..logger import LoggerBot
from .exceptions import SequenceError
from .runnables import Input, Runnable, RunnableConfig, coerce_to_runnable
from .streams import atee, closing_stream, iter_once, merge_streams, wrap_stream_errors

logger = LoggerBot.get_logger()


class RunnableMap(Runnable[Input, Dict[str, Any]]):
    """
    Runs several named Runnables concurrently on the same input and returns
    a dict with one result per name.

    Example:
        chain = Runnable.from_map({
            "city": city_prompt | model | StrOutputParser(),
            "age": age_prompt | model | StrOutputParser(),
        }) | final_prompt | model | StrOutputParser()

    When streaming, `combine_streams=True` (the default) emits a single dict
    holding the last value of every branch once all branches are done. With
    `combine_streams=False` every chunk of every branch is emitted as soon as
    it arrives, as a one-key dict `{name: chunk}`.

    A failing branch is reported as a SequenceError whose index is the branch
    name. The first failure to surface wins and the other branches are cancelled.
    """
    def __init__(self, steps: Mapping[str, Runnable | Callable | Mapping], combine_streams: bool = True):
        self._steps: Dict[str, Runnable] = {str(key): coerce_to_runnable(step) for key, step in steps.items()}
        self.combine_streams = combine_streams

    @property
    def steps(self) -> Mapping[str, Runnable]:
        return MappingProxyType(self._steps)

    async def invoke(self, input: Input, config: RunnableConfig | None = None) -> Dict[str, Any]:
        """Invoke every branch concurrently and collect the results by name."""

        async def _invoke_step(key: str, step: Runnable) -> Any:
            try:
                return await step.invoke(input, config)
            except Exception as e:
                error = SequenceError.wrap(step, key, e)
                if error is e:
                    raise
                logger.error(f"Map branch '{key}' ({step!r}) failed: {e!r}")
                raise error from e

        if not self._steps:
            return {}

        logger.debug(f"-> Map invoked with branches {list(self._steps)}")
        tasks = {key: asyncio.create_task(_invoke_step(key, step)) for key, step in self._steps.items()}
        try:
            done, _ = await asyncio.wait(tasks.values(), return_when=asyncio.FIRST_EXCEPTION)
            for task in tasks.values():
                if task in done and not task.cancelled() and task.exception() is not None:
                    raise task.exception()
        finally:
            for task in tasks.values():
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)

        return {key: task.result() for key, task in tasks.items()}

    async def stream(self, input: Input, config: RunnableConfig | None = None) -> AsyncIterator[Dict[str, Any]]:
        async with closing_stream(self.stream_from_input_stream(iter_once(input), config)) as outputs:
            async for output in outputs:
                yield output

    async def stream_from_input_stream(
        self,
        input_stream: AsyncIterator[Any],
        config: RunnableConfig | None = None,
    ) -> AsyncIterator[Dict[str, Any]]:
        """
        Feed a copy of the input stream to every branch and merge their output streams.
        """
        async with closing_stream(input_stream):
            if not self._steps:
                if self.combine_streams:
                    yield {}
                return

            branch_inputs = atee(input_stream, len(self._steps))
            branches = {
                key: wrap_stream_errors(step.stream_from_input_stream(branch_input, config), step, key)
                for (key, step), branch_input in zip(self._steps.items(), branch_inputs)
            }

            async with closing_stream(merge_streams(branches)) as merged:
                if self.combine_streams:
                    combined: Dict[str, Any] = {}
                    async for key, chunk in merged:
                        combined[key] = chunk
                    yield combined
                else:
                    async for key, chunk in merged:
                        yield {key: chunk}

    def __repr__(self) -> str:
        branches = ", ".join(f"{key!r}: {step!r}" for key, step in self._steps.items())
        return f"RunnableMap({{{branches}}})"
