"""
End-to-end tests: prompts, fan-out, fake model and parsers wired together.
"""

import pytest

from chainkit import (
    ChatPromptTemplate,
    FakeChatModel,
    JsonOutputParser,
    PromptTemplate,
    Runnable,
    RunnableLambda,
    SequenceError,
    StrOutputParser,
    StringChatConcatOutputParser,
)


class TestTwoStageSequence:

    @pytest.mark.asyncio
    async def test_format_then_uppercase(self, collect):
        chain = RunnableLambda(lambda x: x + "!") | RunnableLambda(lambda x: x.upper())

        assert await chain.invoke("hi") == "HI!"
        assert await collect(chain.stream("hi")) == ["HI!"]

    @pytest.mark.asyncio
    async def test_first_stage_failure(self, failing, recording, collect):
        cause = RuntimeError("E")
        second = recording(str.upper)
        chain = failing(cause) | second

        for run in (chain.invoke("hi"), collect(chain.stream("hi"))):
            with pytest.raises(SequenceError) as excinfo:
                await run
            assert excinfo.value.index == 0
            assert excinfo.value.error is cause

        assert second.calls == []


class TestPromptModelParser:

    @pytest.mark.asyncio
    async def test_streaming_tokens(self, collect):
        chain = PromptTemplate.from_template("say {word}") | FakeChatModel(chunk_size=2) | StrOutputParser()

        assert await chain.invoke({"word": "hey"}) == "say hey"
        assert await collect(chain.stream({"word": "hey"})) == ["sa", "y ", "he", "y"]

    @pytest.mark.asyncio
    async def test_accumulating_parser(self, collect):
        chain = PromptTemplate.from_template("say {word}") | FakeChatModel() | StringChatConcatOutputParser()

        assert await collect(chain.stream({"word": "hey"})) == ["say hey"]

    @pytest.mark.asyncio
    async def test_json_from_streamed_model(self, collect):
        model = FakeChatModel(response='```json\n{"answer": 42}\n```', chunk_size=3)
        chain = PromptTemplate.from_template("{q}") | model | JsonOutputParser()

        assert await chain.invoke("anything") == {"answer": 42}
        assert await collect(chain.stream("anything")) == [{"answer": 42}]

    @pytest.mark.asyncio
    async def test_fan_out_into_prompt(self, collect):
        model = FakeChatModel()
        city = ChatPromptTemplate.from_template("Paris, home of {person}") | model | StringChatConcatOutputParser()
        age = ChatPromptTemplate.from_template("36") | model | StringChatConcatOutputParser()
        final = PromptTemplate.from_template("{city} at {age}")

        chain = Runnable.from_map({"city": city, "age": age}) | final | model | StrOutputParser()

        assert await chain.invoke({"person": "Ada"}) == "Paris, home of Ada at 36"
        assert "".join(await collect(chain.stream({"person": "Ada"}))) == "Paris, home of Ada at 36"

    @pytest.mark.asyncio
    async def test_interleaved_map_feeds_prompt(self, collect):
        model = FakeChatModel()
        branches = {
            "a": PromptTemplate.from_template("x{v}") | model | StringChatConcatOutputParser(),
            "b": PromptTemplate.from_template("y{v}") | model | StringChatConcatOutputParser(),
        }
        chain = Runnable.from_map(branches, combine_streams=False) | PromptTemplate.from_template("{a}-{b}")

        assert await collect(chain.stream({"v": 1})) == ["x1-y1"]
