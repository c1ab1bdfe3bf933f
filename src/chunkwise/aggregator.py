"""The stream aggregation state machine.

:class:`StreamAggregator` consumes decoded :class:`ChunkRecord` values
in arrival order and merges them into one :class:`CompletionResult`::

    agg = StreamAggregator()
    for chunk in chunks:
        agg.ingest(chunk)
    result = agg.finalize()

One aggregator serves exactly one stream.  It is not thread-safe:
``ingest`` calls must be serialised by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from chunkwise.chunk import CHUNK_OBJECT, ChunkRecord
from chunkwise.choice import ChoiceAccumulator
from chunkwise.errors import (
    AggregationError,
    AggregatorClosed,
    EmptyStream,
    EnvelopeMismatch,
)
from chunkwise.events import StreamEvent
from chunkwise.results import CompletionResult
from chunkwise.usage import UsageMerger

logger = logging.getLogger(__name__)

Observer = Callable[[CompletionResult], Any]

# Fields that must be identical on every chunk.
_REQUIRED_ENVELOPE = ("created", "model", "object")
# Fields a chunk may omit; once stated they must not change.
_OPTIONAL_ENVELOPE = ("id", "service_tier", "system_fingerprint")


class StreamAggregator:
    """Merges the chunks of one streamed completion.

    Args:
        observer: Called with a partial :class:`CompletionResult` after
            every ingested chunk, before ``ingest`` returns.  Each call
            rebuilds the whole snapshot, so observing a stream of n
            chunks costs O(n^2) overall.  Use the events returned by
            ``ingest`` for very long streams.
        expected_object: Object tag every chunk must carry.  ``None``
            disables the check.
    """

    def __init__(
        self,
        observer: Observer | None = None,
        expected_object: str | None = CHUNK_OBJECT,
    ):
        self.observer = observer
        self.expected_object = expected_object
        self._envelope: dict[str, Any] | None = None
        self._choices: dict[int, ChoiceAccumulator] = {}
        self._usage = UsageMerger()
        self._chunks_seen = 0
        self._error: AggregationError | None = None
        self._result: CompletionResult | None = None

    @property
    def chunks_seen(self) -> int:
        return self._chunks_seen

    @property
    def closed(self) -> bool:
        return self._result is not None

    def ingest(self, chunk: ChunkRecord) -> list[StreamEvent]:
        """Apply one chunk to the running state.

        Returns the fine-grained events the chunk produced, in order.

        Raises:
            ProtocolViolation: The chunk contradicts earlier chunks.  The
                aggregator is unusable afterwards and keeps raising the
                same error.
            AggregatorClosed: ``finalize()`` already succeeded.
        """
        if self._error is not None:
            raise self._error
        if self._result is not None:
            raise AggregatorClosed()
        try:
            events = self._apply(chunk)
        except AggregationError as e:
            self._error = e
            raise
        self._chunks_seen += 1
        logger.debug(
            f"Ingested chunk {self._chunks_seen} with {len(chunk.choices)} choice delta(s)"
        )
        if self.observer is not None:
            self.observer(self._build())
        return events

    def _apply(self, chunk: ChunkRecord) -> list[StreamEvent]:
        self._check_envelope(chunk)
        if chunk.usage is not None:
            self._usage.record(chunk.usage)
        events: list[StreamEvent] = []
        for delta in chunk.choices:
            acc = self._choices.get(delta.index)
            if acc is None:
                acc = ChoiceAccumulator(delta.index)
                self._choices[delta.index] = acc
            events.extend(acc.apply_delta(delta))
        return events

    def _check_envelope(self, chunk: ChunkRecord) -> None:
        if self.expected_object is not None and chunk.object != self.expected_object:
            self._mismatch("object", self.expected_object, chunk.object)
        if self._envelope is None:
            self._envelope = {
                name: getattr(chunk, name)
                for name in _REQUIRED_ENVELOPE + _OPTIONAL_ENVELOPE
            }
            return
        for name in _REQUIRED_ENVELOPE:
            value = getattr(chunk, name)
            if value != self._envelope[name]:
                self._mismatch(name, self._envelope[name], value)
        for name in _OPTIONAL_ENVELOPE:
            value = getattr(chunk, name)
            if value is None:
                continue
            if self._envelope[name] is None:
                self._envelope[name] = value
            elif value != self._envelope[name]:
                self._mismatch(name, self._envelope[name], value)

    def _mismatch(self, name: str, expected: Any, actual: Any) -> None:
        logger.warning(f"Envelope field {name!r} changed from {expected!r} to {actual!r}")
        raise EnvelopeMismatch(name, expected, actual)

    def snapshot(self) -> CompletionResult:
        """Return the partial result so far without closing the stream.

        Raises:
            EmptyStream: No chunk has been ingested yet.
        """
        if self._error is not None:
            raise self._error
        if self._result is not None:
            return self._result
        return self._build()

    def finalize(self) -> CompletionResult:
        """Close the stream and return the merged completion.

        Repeated calls return the same result.  Calling this before the
        source is exhausted treats what was ingested as the whole stream.

        Raises:
            EmptyStream: ``ingest`` was never called.
            ProtocolViolation: A previous ``ingest`` failed.
        """
        if self._error is not None:
            raise self._error
        if self._result is not None:
            return self._result
        result = self._build()
        unfinished = [c.index for c in result.choices if c.finish_reason is None]
        if unfinished:
            logger.warning(f"Finalized with unfinished choice(s) {unfinished}")
        logger.info(
            f"Finalized stream of {self._chunks_seen} chunk(s): "
            f"{len(result.choices)} choice(s), usage={'yes' if result.usage else 'no'}"
        )
        self._result = result
        return result

    def _build(self) -> CompletionResult:
        if self._envelope is None:
            raise EmptyStream()
        return CompletionResult(
            **self._envelope,
            choices=tuple(
                self._choices[index].snapshot() for index in sorted(self._choices)
            ),
            usage=self._usage.current(),
        )
