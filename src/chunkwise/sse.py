"""Server-Sent Events adapter for aggregation events."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from dataclasses import asdict

from chunkwise.events import CompletionEvent, SnapshotEvent, StreamEvent


async def sse_generator(
    event_stream: AsyncIterator[StreamEvent],
) -> AsyncIterator[str]:
    """Convert a StreamEvent async iterator into SSE-formatted strings."""
    async for event in event_stream:
        event_type = type(event).__name__
        if isinstance(event, CompletionEvent):
            data = _dump_result(event.result)
        elif isinstance(event, SnapshotEvent):
            data = _dump_result(event.snapshot)
        else:
            data = json.dumps(asdict(event))
        yield f"event: {event_type}\ndata: {data}\n\n"
    yield "event: done\ndata: {}\n\n"


def _dump_result(result) -> str:
    if result is None:
        return "{}"
    return result.model_dump_json(exclude_none=True)
