"""Tests for aggregating streams produced by the openai SDK."""

import pytest
from openai.types.chat import ChatCompletionChunk

from chunkwise.chunk import FinishReason
from chunkwise.sources import aggregate_openai_stream, from_openai_chunk, openai_chunks

from tests.conftest import async_chunks


def sdk_chunk(choices, usage=None) -> ChatCompletionChunk:
    payload = {
        "id": "chatcmpl-sdk",
        "object": "chat.completion.chunk",
        "created": 1726300000,
        "model": "gpt-4o-mini",
        "system_fingerprint": "fp_1",
        "choices": choices,
    }
    if usage is not None:
        payload["usage"] = usage
    return ChatCompletionChunk.model_validate(payload)


SDK_STREAM = [
    sdk_chunk([{"index": 0, "delta": {"role": "assistant", "content": ""}, "finish_reason": None}]),
    sdk_chunk([{"index": 0, "delta": {"tool_calls": [
        {"index": 0, "id": "call_1", "type": "function",
         "function": {"name": "get_weather", "arguments": ""}},
    ]}, "finish_reason": None}]),
    sdk_chunk([{"index": 0, "delta": {"tool_calls": [
        {"index": 0, "function": {"arguments": '{"city":'}},
    ]}, "finish_reason": None}]),
    sdk_chunk([{"index": 0, "delta": {"tool_calls": [
        {"index": 0, "function": {"arguments": '"Paris"}'}},
    ]}, "finish_reason": None}]),
    sdk_chunk([{"index": 0, "delta": {}, "finish_reason": "tool_calls"}]),
    sdk_chunk([], usage={"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}),
]


class TestFromOpenAIChunk:
    def test_converts_envelope_and_delta(self):
        record = from_openai_chunk(SDK_STREAM[1])

        assert record.id == "chatcmpl-sdk"
        assert record.model == "gpt-4o-mini"
        assert record.system_fingerprint == "fp_1"
        tc = record.choices[0].delta.tool_calls[0]
        assert (tc.index, tc.id, tc.function.name) == (0, "call_1", "get_weather")

    def test_sdk_only_finish_reason_is_preserved(self):
        record = from_openai_chunk(
            sdk_chunk([{"index": 0, "delta": {}, "finish_reason": "function_call"}])
        )
        assert record.choices[0].finish_reason.value == "function_call"


class TestAggregateOpenAIStream:
    @pytest.mark.asyncio
    async def test_tool_call_stream(self):
        result = await aggregate_openai_stream(async_chunks(SDK_STREAM))

        c = result.choice(0)
        assert c.role == "assistant"
        assert c.finish_reason is FinishReason.TOOL_CALLS
        assert c.tool_calls[0].function.name == "get_weather"
        assert c.tool_calls[0].function.arguments == '{"city":"Paris"}'
        assert result.usage.total_tokens == 15

    @pytest.mark.asyncio
    async def test_openai_chunks_preserves_order(self):
        records = [r async for r in openai_chunks(async_chunks(SDK_STREAM))]
        assert len(records) == len(SDK_STREAM)
        assert records[-1].usage.prompt_tokens == 10
