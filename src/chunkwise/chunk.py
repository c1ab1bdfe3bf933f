"""Decoded chunk records of a streamed chat completion.

A :class:`ChunkRecord` is the value produced by decoding one streamed
message.  Field names match the snake-case wire keys, so a decoded
payload validates directly::

    chunk = ChunkRecord.model_validate_json(line)
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class FinishReason(Enum):
    """Why a choice stopped generating.

    Values outside the known set are kept as an ``UNKNOWN`` member
    carrying the raw wire string instead of failing validation.
    """

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        member = object.__new__(cls)
        member._name_ = "UNKNOWN"
        member._value_ = value
        return member

    @property
    def is_known(self) -> bool:
        return self._name_ != "UNKNOWN"

    def __eq__(self, other):
        if isinstance(other, FinishReason):
            return self._value_ == other._value_
        return NotImplemented

    def __hash__(self):
        return hash(self._value_)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class FunctionDelta(_Record):
    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(_Record):
    """One fragment of a tool call.

    ``index`` is optional: servers that send it get exact slot
    matching, the rest fall back to id and position matching.
    """

    index: int | None = None
    id: str | None = None
    type: str | None = None
    function: FunctionDelta | None = None


class Delta(_Record):
    role: str | None = None
    content: str | None = None
    refusal: str | None = None
    tool_calls: tuple[ToolCallDelta, ...] | None = None


class TokenLogprob(_Record):
    """Log-probability of one token.

    ``top_logprobs`` holds same-shaped alternatives.  The model is
    recursive but servers only populate a single level.
    """

    token: str
    logprob: float
    bytes: tuple[int, ...] | None = None
    top_logprobs: tuple[TokenLogprob, ...] | None = None


class ChoiceLogprobs(_Record):
    content: tuple[TokenLogprob, ...] | None = None
    refusal: tuple[TokenLogprob, ...] | None = None


class ChoiceDelta(_Record):
    index: int
    delta: Delta | None = None
    finish_reason: FinishReason | None = None
    logprobs: ChoiceLogprobs | None = None

    @field_validator("index")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("choice index must be non-negative")
        return value

    @field_validator("finish_reason", mode="before")
    @classmethod
    def _keep_unknown_reason(cls, value):
        if isinstance(value, str):
            return FinishReason(value)
        return value


class CompletionTokensDetails(_Record):
    accepted_prediction_tokens: int | None = None
    rejected_prediction_tokens: int | None = None
    reasoning_tokens: int | None = None


class PromptTokensDetails(_Record):
    cached_tokens: int | None = None


class Usage(_Record):
    """Token accounting for the whole request."""

    completion_tokens: int | None = None
    prompt_tokens: int | None = None
    total_tokens: int | None = None
    completion_tokens_details: CompletionTokensDetails | None = None
    prompt_tokens_details: PromptTokensDetails | None = None


CHUNK_OBJECT = "chat.completion.chunk"


class ChunkRecord(_Record):
    """One decoded message of a streamed chat completion.

    ``id``, ``created``, ``model``, ``object``, ``service_tier`` and
    ``system_fingerprint`` form the envelope and stay constant for the
    whole stream.
    """

    id: str | None = None
    created: int
    model: str
    object: str = CHUNK_OBJECT
    service_tier: str | None = None
    system_fingerprint: str | None = None
    choices: tuple[ChoiceDelta, ...] = ()
    usage: Usage | None = None
