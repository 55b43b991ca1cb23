import asyncio

import pytest

from chainkit import Runnable


class RecordingRunnable(Runnable):
    """Applies `func` and records every input it is invoked with."""
    def __init__(self, func, name="recording"):
        self.func = func
        self.name = name
        self.calls = []

    async def invoke(self, input, config=None):
        self.calls.append(input)
        return self.func(input)

    def get_name(self):
        return self.name


class FailingRunnable(Runnable):
    """Always raises `error`, both when invoked and when streamed."""
    def __init__(self, error):
        self.error = error
        self.calls = 0

    async def invoke(self, input, config=None):
        self.calls += 1
        raise self.error


class ChunkStreamer(Runnable):
    """Streams `chunks` natively, sleeping `delay` seconds before each one."""
    def __init__(self, chunks, delay=0.0):
        self.chunks = list(chunks)
        self.delay = delay

    async def invoke(self, input, config=None):
        return self.chunks[-1]

    async def stream(self, input, config=None):
        for chunk in self.chunks:
            await asyncio.sleep(self.delay)
            yield chunk


class CountingStreamer(Runnable):
    """Streams 0..count-1 natively, counting what it produced and noting when it is closed."""
    def __init__(self, count=5):
        self.count = count
        self.produced = 0
        self.closed = False

    async def invoke(self, input, config=None):
        return self.count - 1

    async def stream(self, input, config=None):
        try:
            for i in range(self.count):
                await asyncio.sleep(0)
                self.produced += 1
                yield i
        finally:
            self.closed = True


class SlowRunnable(Runnable):
    """Sleeps for a long time and records whether it was cancelled or closed."""
    def __init__(self, seconds=10.0):
        self.seconds = seconds
        self.cancelled = False
        self.closed = False

    async def invoke(self, input, config=None):
        try:
            await asyncio.sleep(self.seconds)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return input

    async def stream(self, input, config=None):
        try:
            await asyncio.sleep(self.seconds)
            yield input
        finally:
            self.closed = True


@pytest.fixture
def recording():
    return RecordingRunnable


@pytest.fixture
def failing():
    return FailingRunnable


@pytest.fixture
def chunk_streamer():
    return ChunkStreamer


@pytest.fixture
def counting_streamer():
    return CountingStreamer


@pytest.fixture
def slow():
    return SlowRunnable


@pytest.fixture
def collect():
    """Drain an async stream into a list."""
    async def _collect(stream):
        return [item async for item in stream]
    return _collect


@pytest.fixture
def stream_of():
    """Build an async stream from the given items."""
    def _stream_of(*items):
        async def _gen():
            for item in items:
                yield item
        return _gen()
    return _stream_of
