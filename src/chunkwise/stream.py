"""Drivers that run a chunk source through a :class:`StreamAggregator`.

``aggregate()`` drains ``iter_events()``.  ``iter_events()`` is the
streaming entry point for callers that render tokens as they arrive.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable

from chunkwise.aggregator import StreamAggregator
from chunkwise.chunk import ChunkRecord
from chunkwise.events import CompletionEvent, SnapshotEvent, StreamEvent
from chunkwise.instrumentation import aggregation_span, record_error, record_result
from chunkwise.results import CompletionResult

logger = logging.getLogger(__name__)

ChunkSource = AsyncIterable[ChunkRecord] | Iterable[ChunkRecord]


async def _aiter(chunks: ChunkSource) -> AsyncIterator[ChunkRecord]:
    if isinstance(chunks, AsyncIterable):
        async for chunk in chunks:
            yield chunk
    else:
        for chunk in chunks:
            yield chunk


async def iter_events(
    chunks: ChunkSource,
    aggregator: StreamAggregator | None = None,
    *,
    snapshots: bool = False,
) -> AsyncIterator[StreamEvent]:
    """Aggregate *chunks*, yielding events as each chunk is merged.

    Errors raised by the source (transport or decoding failures) and
    protocol violations propagate unchanged.

    Args:
        chunks: Async iterator or plain iterable of chunk records, in
            arrival order.
        aggregator: Aggregator to feed; a fresh one by default.
        snapshots: Also yield a :class:`SnapshotEvent` after every chunk.
    """
    agg = aggregator if aggregator is not None else StreamAggregator()
    with aggregation_span() as span:
        try:
            async for chunk in _aiter(chunks):
                for event in agg.ingest(chunk):
                    yield event
                if snapshots:
                    yield SnapshotEvent(snapshot=agg.snapshot())
            result = agg.finalize()
        except Exception as e:
            logger.error(f"Stream aggregation failed after {agg.chunks_seen} chunk(s): {e}")
            record_error(span, e)
            raise
        record_result(span, result, agg.chunks_seen)
    yield CompletionEvent(result=result)


async def aggregate(
    chunks: ChunkSource,
    aggregator: StreamAggregator | None = None,
) -> CompletionResult:
    """Aggregate *chunks* and return the merged completion."""
    result: CompletionResult | None = None
    async for event in iter_events(chunks, aggregator):
        if isinstance(event, CompletionEvent):
            result = event.result
    if result is None:
        raise RuntimeError("iter_events() ended without emitting CompletionEvent")
    return result


def aggregate_sync(
    chunks: Iterable[ChunkRecord],
    aggregator: StreamAggregator | None = None,
) -> CompletionResult:
    """Synchronous counterpart of :func:`aggregate` for plain iterables."""
    agg = aggregator if aggregator is not None else StreamAggregator()
    with aggregation_span() as span:
        try:
            for chunk in chunks:
                agg.ingest(chunk)
            result = agg.finalize()
        except Exception as e:
            logger.error(f"Stream aggregation failed after {agg.chunks_seen} chunk(s): {e}")
            record_error(span, e)
            raise
        record_result(span, result, agg.chunks_seen)
    return result
