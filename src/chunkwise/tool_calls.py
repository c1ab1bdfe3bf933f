"""Reassembly of one streamed tool call.

Tool-call arguments arrive as text fragments spread across many
chunks.  A :class:`ToolCallAccumulator` owns one tool-call slot of a
choice and concatenates its fragments verbatim.
"""

from __future__ import annotations

import logging

from chunkwise.chunk import ToolCallDelta
from chunkwise.errors import ToolCallMismatch
from chunkwise.results import FunctionCall, ToolCallResult

logger = logging.getLogger(__name__)


class ToolCallAccumulator:
    """Running merge state for one tool-call slot.

    Args:
        index: Slot key within the owning choice.
        choice_index: Index of the owning choice, for error reports.
    """

    def __init__(self, index: int, choice_index: int) -> None:
        self.index = index
        self.choice_index = choice_index
        self.id: str | None = None
        self.type: str | None = None
        self.name: str | None = None
        self._arguments: list[str] = []

    def apply(self, delta: ToolCallDelta) -> None:
        self.id = self._settle("id", self.id, delta.id)
        self.type = self._settle("type", self.type, delta.type)
        if delta.function is not None:
            self.name = self._settle("function.name", self.name, delta.function.name)
            if delta.function.arguments:
                self._arguments.append(delta.function.arguments)

    def _settle(self, field: str, current: str | None, incoming: str | None) -> str | None:
        if not incoming or incoming == current:
            return current
        if current is None:
            return incoming
        logger.warning(
            f"Tool call {self.index} of choice {self.choice_index}: "
            f"{field} changed from {current!r} to {incoming!r}"
        )
        raise ToolCallMismatch(
            field, current, incoming,
            choice_index=self.choice_index, tool_call_index=self.index,
        )

    @property
    def arguments(self) -> str:
        return "".join(self._arguments)

    def snapshot(self) -> ToolCallResult:
        return ToolCallResult(
            index=self.index,
            id=self.id,
            type=self.type,
            function=FunctionCall(name=self.name, arguments=self.arguments),
        )
