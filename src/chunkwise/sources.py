"""Adapter from the ``openai`` SDK's streamed chunks to chunk records.

The SDK already decodes each SSE message into a
``ChatCompletionChunk``; this module re-validates its wire shape as a
:class:`ChunkRecord` so the stream can be aggregated::

    stream = await client.chat.completions.create(..., stream=True)
    result = await aggregate_openai_stream(stream)
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator

from openai.types.chat import ChatCompletionChunk

from chunkwise.aggregator import StreamAggregator
from chunkwise.chunk import ChunkRecord
from chunkwise.results import CompletionResult
from chunkwise.stream import aggregate


def from_openai_chunk(chunk: ChatCompletionChunk) -> ChunkRecord:
    return ChunkRecord.model_validate(chunk.model_dump(exclude_unset=True))


async def openai_chunks(
    stream: AsyncIterable[ChatCompletionChunk],
) -> AsyncIterator[ChunkRecord]:
    """Lift an SDK chunk stream into chunk records, preserving order."""
    async for chunk in stream:
        yield from_openai_chunk(chunk)


async def aggregate_openai_stream(
    stream: AsyncIterable[ChatCompletionChunk],
    aggregator: StreamAggregator | None = None,
) -> CompletionResult:
    """Aggregate an ``openai`` SDK chunk stream into one completion."""
    return await aggregate(openai_chunks(stream), aggregator)
