"""Immutable results produced from an aggregated stream.

Every result is a frozen value built fresh at snapshot time, so a
caller holding one never sees later updates to the stream.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict

from chunkwise.chunk import ChoiceLogprobs, FinishReason, Usage


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


class FunctionCall(_Result):
    name: str | None = None
    arguments: str = ""


class ToolCallResult(_Result):
    """A tool call reassembled from its fragments.

    ``function.arguments`` is the raw concatenated text.  It is only
    guaranteed to be valid JSON once the choice has finished.
    """

    index: int
    id: str | None = None
    type: str | None = None
    function: FunctionCall = FunctionCall()

    def parse_arguments(self) -> Any:
        """Decode the argument text.

        Raises:
            json.JSONDecodeError: If the text is not valid JSON.
        """
        return json.loads(self.function.arguments)


class ChoiceResult(_Result):
    index: int
    role: str | None = None
    content: str | None = None
    refusal: str | None = None
    tool_calls: tuple[ToolCallResult, ...] = ()
    finish_reason: FinishReason | None = None
    logprobs: ChoiceLogprobs | None = None

    @property
    def finished(self) -> bool:
        return self.finish_reason is not None


class CompletionResult(_Result):
    """The merged completion: envelope, choices in index order, usage."""

    id: str | None = None
    created: int
    model: str
    object: str
    service_tier: str | None = None
    system_fingerprint: str | None = None
    choices: tuple[ChoiceResult, ...] = ()
    usage: Usage | None = None

    def choice(self, index: int) -> ChoiceResult:
        """Return the choice with *index*.

        Raises:
            KeyError: If no delta ever referenced that index.
        """
        for c in self.choices:
            if c.index == index:
                return c
        raise KeyError(index)
