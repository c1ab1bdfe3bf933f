"""Events emitted while a stream is aggregated."""

from __future__ import annotations

from dataclasses import dataclass

from chunkwise.results import CompletionResult


@dataclass
class StreamEvent:
    """Base for all streaming events."""


@dataclass
class ContentDeltaEvent(StreamEvent):
    """A content fragment appended to a choice."""

    choice_index: int = 0
    content: str = ""


@dataclass
class RefusalDeltaEvent(StreamEvent):
    """A refusal fragment appended to a choice."""

    choice_index: int = 0
    refusal: str = ""


@dataclass
class ToolCallDeltaEvent(StreamEvent):
    """A tool-call fragment routed to its slot.

    ``name`` is only set on fragments that carry it.
    """

    choice_index: int = 0
    tool_call_index: int = 0
    name: str | None = None
    arguments: str = ""


@dataclass
class FinishEvent(StreamEvent):
    """A choice recorded its finish reason."""

    choice_index: int = 0
    finish_reason: str = ""


@dataclass
class SnapshotEvent(StreamEvent):
    """Partial completion after one chunk was ingested."""

    snapshot: CompletionResult | None = None


@dataclass
class CompletionEvent(StreamEvent):
    """Final event, always the last one yielded."""

    result: CompletionResult | None = None
