"""Errors raised while aggregating a chunk stream.

Every error derives from :class:`AggregationError`.  Protocol
violations mean the remote stream contradicted its own earlier
chunks; they are never retried and always abort the stream.
"""

from __future__ import annotations

from typing import Any


class AggregationError(Exception):
    """Base for all aggregation failures."""


class ProtocolViolation(AggregationError):
    """The stream disagrees with a value it already sent.

    Args:
        field: Name of the field that disagreed.
        expected: The previously recorded value.
        actual: The conflicting value from the latest chunk.
        choice_index: Choice the field belongs to, if any.
        tool_call_index: Tool-call slot the field belongs to, if any.
    """

    def __init__(
        self,
        field: str,
        expected: Any = None,
        actual: Any = None,
        choice_index: int | None = None,
        tool_call_index: int | None = None,
    ):
        self.field = field
        self.expected = expected
        self.actual = actual
        self.choice_index = choice_index
        self.tool_call_index = tool_call_index
        super().__init__(self._describe())

    def _describe(self) -> str:
        where = []
        if self.choice_index is not None:
            where.append(f"choice {self.choice_index}")
        if self.tool_call_index is not None:
            where.append(f"tool call {self.tool_call_index}")
        location = f" ({', '.join(where)})" if where else ""
        return (
            f"{type(self).__name__}: field '{self.field}'{location} "
            f"was {self.expected!r}, got {self.actual!r}"
        )


class EnvelopeMismatch(ProtocolViolation):
    """A stream-constant envelope field changed between chunks."""


class ConflictingFinishReason(ProtocolViolation):
    """A choice received two different finish reasons."""


class DuplicateUsage(ProtocolViolation):
    """More than one chunk carried usage statistics."""


class RoleConflict(ProtocolViolation):
    """A choice's role was set twice with different values."""


class ToolCallMismatch(ProtocolViolation):
    """A tool-call slot received a differing id, type or name."""


class EmptyStream(AggregationError):
    """A result was requested before any chunk was ingested."""

    def __init__(self, message: str = "no chunks were ingested"):
        super().__init__(message)


class AggregatorClosed(AggregationError):
    """``ingest`` was called on an aggregator that already finalized."""

    def __init__(self, message: str = "aggregator is single-use and already finalized"):
        super().__init__(message)
