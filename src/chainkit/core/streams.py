# File: src/chainkit/core/streams.py

"""
Helpers for the async streams that flow between runnables.

Every stream here is an `AsyncIterator`. Streams are lazy and single-use: a
stream that several consumers need must go through `atee` first.
"""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Protocol, Tuple, TypeVar, runtime_checkable

from ..logger import LoggerBot
from .exceptions import SequenceError

T = TypeVar("T")

logger = LoggerBot.get_logger()


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return self.name


EMPTY = _Sentinel("EMPTY")
_END = _Sentinel("END")
_NO_DEFAULT = _Sentinel("NO_DEFAULT")


class _Failure:
    __slots__ = ("error",)

    def __init__(self, error: BaseException):
        self.error = error


@runtime_checkable
class Concatenable(Protocol):
    """A partial result that knows how to append the next partial result to itself."""

    def concat(self, other: Any) -> Any:
        ...


def combine_chunks(previous: Any, current: Any) -> Any:
    """Combine two consecutive chunks of a stream into one value."""
    if isinstance(previous, Concatenable):
        return previous.concat(current)
    if isinstance(previous, str) and isinstance(current, str):
        return previous + current
    if isinstance(previous, list) and isinstance(current, list):
        return [*previous, *current]
    if isinstance(previous, dict) and isinstance(current, dict):
        return {**previous, **current}
    return current


async def iter_once(value: T) -> AsyncIterator[T]:
    """A stream holding a single value."""
    yield value


async def aclose_stream(stream: Any) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


@asynccontextmanager
async def closing_stream(stream: AsyncIterator[T]):
    """Close `stream` on exit, so closing a consumer also closes its producer."""
    try:
        yield stream
    finally:
        await aclose_stream(stream)


async def reduce_stream(
    stream: AsyncIterator[T],
    combine: Callable[[T, T], T] = combine_chunks,
    default: Any = _NO_DEFAULT,
) -> T:
    """
    Drain `stream` and fold every chunk into one value with `combine`.

    Raises ValueError on an empty stream unless a `default` is given. Any value
    can be the default, `EMPTY` included.
    """
    result: Any = EMPTY
    async with closing_stream(stream):
        async for chunk in stream:
            result = chunk if result is EMPTY else combine(result, chunk)
    if result is EMPTY:
        if default is _NO_DEFAULT:
            raise ValueError("Cannot reduce an empty stream.")
        return default
    return result


def atee(source: AsyncIterator[T], n: int) -> Tuple[AsyncIterator[T], ...]:
    """
    Split one stream into `n` independent streams that each see every chunk.

    Chunks are pulled from `source` only when the slowest-to-buffer child asks
    for one, and the source is closed once every child is closed.
    """
    iterator = source.__aiter__()
    buffers: list[deque] = [deque() for _ in range(n)]
    lock = asyncio.Lock()
    active = [n]

    async def pull() -> None:
        try:
            item: Any = await iterator.__anext__()
        except StopAsyncIteration:
            item = _END
        except Exception as e:
            item = _Failure(e)
        for buffer in buffers:
            buffer.append(item)

    async def child(buffer: deque) -> AsyncIterator[T]:
        try:
            while True:
                if not buffer:
                    async with lock:
                        # another child may have filled the buffers while we waited
                        if not buffer:
                            await pull()
                item = buffer.popleft()
                if item is _END:
                    return
                if isinstance(item, _Failure):
                    raise item.error
                yield item
        finally:
            active[0] -= 1
            if active[0] == 0:
                await aclose_stream(source)

    return tuple(child(buffer) for buffer in buffers)


async def merge_streams(streams: Dict[str, AsyncIterator[Any]]) -> AsyncIterator[Tuple[str, Any]]:
    """
    Merge named streams into one stream of `(name, chunk)` pairs.

    Chunks are delivered in the order they arrive. Only one chunk per stream is
    in flight at a time, so every stream keeps its own order. The first error
    raised by any stream is re-raised here and the other streams are cancelled.
    Closing the merged stream cancels and closes every source stream.
    """

    async def next_chunk(stream: AsyncIterator[Any]) -> Any:
        try:
            return await stream.__anext__()
        except StopAsyncIteration:
            return _END

    tasks = {asyncio.create_task(next_chunk(stream)): (name, stream) for name, stream in streams.items()}
    try:
        while tasks:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                name, stream = tasks.pop(task)
                chunk = task.result()
                if chunk is _END:
                    continue
                yield name, chunk
                tasks[asyncio.create_task(next_chunk(stream))] = (name, stream)
    finally:
        if tasks:
            logger.debug(f"Cancelling {len(tasks)} unfinished stream(s): {[name for name, _ in tasks.values()]}")
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        for stream in streams.values():
            await aclose_stream(stream)


async def wrap_stream_errors(stream: AsyncIterator[T], runnable: Any, index: int | str) -> AsyncIterator[T]:
    """
    Re-raise failures of `stream` as a SequenceError pointing at `runnable`.

    A SequenceError coming from further upstream is passed through untouched.
    """
    async with closing_stream(stream):
        try:
            async for chunk in stream:
                yield chunk
        except Exception as e:
            error = SequenceError.wrap(runnable, index, e)
            if error is e:
                raise
            logger.error(f"Step {index!r} ({runnable!r}) failed while streaming: {e!r}")
            raise error from e
