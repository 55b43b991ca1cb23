"""
Unit Tests for chat models

ChatOpenAI is exercised against a stub client, no network access.
"""

from types import SimpleNamespace

import pytest

from chainkit import AIMessage, ChatOpenAI, FakeChatModel, HumanMessage, SystemMessage, reduce_stream


class StubCompletions:
    """Mimics `client.chat.completions` of the OpenAI SDK."""
    def __init__(self, content="", deltas=()):
        self.content = content
        self.deltas = list(deltas)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if kwargs.get("stream"):
            return self._stream()
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason="stop")])

    async def _stream(self):
        for delta in self.deltas:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=delta), finish_reason=None)])
        yield SimpleNamespace(choices=[])
        yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=None), finish_reason="stop")])


@pytest.fixture
def completions():
    return StubCompletions(content="Hello there", deltas=["Hel", "lo"])


@pytest.fixture
def chat_model(completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return ChatOpenAI(model_name="test-model", api_key="sk-test", client=client)


class TestChatOpenAI:

    @pytest.mark.asyncio
    async def test_invoke(self, chat_model, completions):
        result = await chat_model.invoke([SystemMessage(content="be brief"), HumanMessage(content="hi")])

        assert result == AIMessage(content="Hello there", finish_reason="stop")
        assert completions.calls[0]["model"] == "test-model"
        assert completions.calls[0]["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ]

    @pytest.mark.asyncio
    async def test_string_input(self, chat_model, completions):
        await chat_model.invoke("hi")

        assert completions.calls[0]["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_stream_yields_deltas(self, chat_model, completions, collect):
        chunks = await collect(chat_model.stream("hi"))

        assert [c.content for c in chunks] == ["Hel", "lo", ""]
        assert chunks[-1].finish_reason == "stop"
        assert completions.calls[0]["stream"] is True

    @pytest.mark.asyncio
    async def test_unsupported_message(self, chat_model):
        with pytest.raises(ValueError, match="Unsupported message type"):
            await chat_model.invoke([{"role": "user"}])


class TestFakeChatModel:

    @pytest.mark.asyncio
    async def test_echoes_last_message(self):
        model = FakeChatModel()

        assert (await model.invoke([HumanMessage(content="a"), HumanMessage(content="b")])).content == "b"

    @pytest.mark.asyncio
    async def test_stream_chunks_concat_to_invoke(self, collect):
        model = FakeChatModel(response="streaming", chunk_size=4)

        chunks = await collect(model.stream("ignored"))

        assert [c.content for c in chunks] == ["stre", "amin", "g"]
        assert await reduce_stream(collect_stream(chunks)) == await model.invoke("ignored")


async def collect_stream(items):
    for item in items:
        yield item
