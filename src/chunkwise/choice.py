"""Per-choice merge state.

A :class:`ChoiceAccumulator` concatenates the content and refusal
fragments of one choice index, records its role and finish reason,
collects its log-probability trace and owns its tool-call slots.
"""

from __future__ import annotations

import logging

from chunkwise.chunk import ChoiceDelta, ChoiceLogprobs, FinishReason, TokenLogprob, ToolCallDelta
from chunkwise.errors import ConflictingFinishReason, RoleConflict
from chunkwise.events import (
    ContentDeltaEvent,
    FinishEvent,
    RefusalDeltaEvent,
    StreamEvent,
    ToolCallDeltaEvent,
)
from chunkwise.results import ChoiceResult
from chunkwise.tool_calls import ToolCallAccumulator

logger = logging.getLogger(__name__)


class ChoiceAccumulator:
    """Running merge state for one choice index."""

    def __init__(self, index: int) -> None:
        self.index = index
        self.role: str | None = None
        self.finish_reason: FinishReason | None = None
        self._content: list[str] | None = None
        self._refusal: list[str] | None = None
        self._content_logprobs: list[TokenLogprob] | None = None
        self._refusal_logprobs: list[TokenLogprob] | None = None
        self._tool_calls: dict[int, ToolCallAccumulator] = {}
        self._last_opened: int | None = None

    def apply_delta(self, delta: ChoiceDelta) -> list[StreamEvent]:
        """Merge one delta and return the events it produced."""
        events: list[StreamEvent] = []
        payload = delta.delta
        if payload is not None:
            self._set_role(payload.role)
            if payload.content is not None:
                if self._content is None:
                    self._content = []
                self._content.append(payload.content)
                if payload.content:
                    events.append(ContentDeltaEvent(
                        choice_index=self.index, content=payload.content,
                    ))
            if payload.refusal is not None:
                if self._refusal is None:
                    self._refusal = []
                self._refusal.append(payload.refusal)
                if payload.refusal:
                    events.append(RefusalDeltaEvent(
                        choice_index=self.index, refusal=payload.refusal,
                    ))
            if payload.tool_calls:
                batch = len(payload.tool_calls)
                for position, tc in enumerate(payload.tool_calls):
                    events.append(self.apply_tool_call_delta(tc, position, batch))

        if delta.logprobs is not None:
            self._merge_logprobs(delta.logprobs)

        if delta.finish_reason is not None and self._set_finish_reason(delta.finish_reason):
            events.append(FinishEvent(
                choice_index=self.index,
                finish_reason=delta.finish_reason.value,
            ))
        return events

    def apply_tool_call_delta(
        self, delta: ToolCallDelta, position: int = 0, batch: int = 1,
    ) -> ToolCallDeltaEvent:
        """Route a tool-call fragment to its slot and merge it."""
        key = self._resolve_slot(delta, position, batch)
        slot = self._tool_calls.get(key)
        if slot is None:
            slot = ToolCallAccumulator(index=key, choice_index=self.index)
            self._tool_calls[key] = slot
            self._last_opened = key
            logger.debug(f"Choice {self.index}: opened tool call slot {key}")
        slot.apply(delta)
        function = delta.function
        return ToolCallDeltaEvent(
            choice_index=self.index,
            tool_call_index=key,
            name=function.name if function else None,
            arguments=(function.arguments or "") if function else "",
        )

    def _resolve_slot(self, delta: ToolCallDelta, position: int, batch: int) -> int:
        # Explicit index is authoritative when the server sends it.
        if delta.index is not None:
            return delta.index
        if delta.id:
            for key, slot in self._tool_calls.items():
                if slot.id == delta.id:
                    return key
            return self._next_free_slot(position)
        # Lone continuation fragments belong to the newest call.
        if batch == 1 and self._last_opened is not None:
            return self._last_opened
        return position

    def _next_free_slot(self, position: int) -> int:
        if position not in self._tool_calls:
            return position
        return max(self._tool_calls) + 1

    def _set_role(self, role: str | None) -> None:
        if not role or role == self.role:
            return
        if self.role is not None:
            logger.warning(f"Choice {self.index}: role changed from {self.role!r} to {role!r}")
            raise RoleConflict("role", self.role, role, choice_index=self.index)
        self.role = role

    def _set_finish_reason(self, reason: FinishReason) -> bool:
        if self.finish_reason is None:
            if not reason.is_known:
                logger.info(f"Choice {self.index}: unrecognised finish reason {reason.value!r}")
            self.finish_reason = reason
            return True
        if reason != self.finish_reason:
            logger.warning(
                f"Choice {self.index}: finish reason changed from "
                f"{self.finish_reason.value!r} to {reason.value!r}"
            )
            raise ConflictingFinishReason(
                "finish_reason", self.finish_reason.value, reason.value,
                choice_index=self.index,
            )
        return False

    def _merge_logprobs(self, logprobs: ChoiceLogprobs) -> None:
        if logprobs.content is not None:
            if self._content_logprobs is None:
                self._content_logprobs = []
            self._content_logprobs.extend(logprobs.content)
        if logprobs.refusal is not None:
            if self._refusal_logprobs is None:
                self._refusal_logprobs = []
            self._refusal_logprobs.extend(logprobs.refusal)

    def snapshot(self) -> ChoiceResult:
        logprobs = None
        if self._content_logprobs is not None or self._refusal_logprobs is not None:
            logprobs = ChoiceLogprobs(
                content=_freeze(self._content_logprobs),
                refusal=_freeze(self._refusal_logprobs),
            )
        return ChoiceResult(
            index=self.index,
            role=self.role,
            content=_join(self._content),
            refusal=_join(self._refusal),
            tool_calls=tuple(
                self._tool_calls[key].snapshot() for key in sorted(self._tool_calls)
            ),
            finish_reason=self.finish_reason,
            logprobs=logprobs,
        )


def _join(parts: list[str] | None) -> str | None:
    return None if parts is None else "".join(parts)


def _freeze(entries: list[TokenLogprob] | None) -> tuple[TokenLogprob, ...] | None:
    return None if entries is None else tuple(entries)
