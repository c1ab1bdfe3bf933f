from chunkwise.aggregator import StreamAggregator
from chunkwise.chunk import (
    ChoiceDelta,
    ChoiceLogprobs,
    ChunkRecord,
    CompletionTokensDetails,
    Delta,
    FinishReason,
    FunctionDelta,
    PromptTokensDetails,
    TokenLogprob,
    ToolCallDelta,
    Usage,
)
from chunkwise.errors import (
    AggregationError,
    AggregatorClosed,
    ConflictingFinishReason,
    DuplicateUsage,
    EmptyStream,
    EnvelopeMismatch,
    ProtocolViolation,
    RoleConflict,
    ToolCallMismatch,
)
from chunkwise.instrumentation import instrument, uninstrument
from chunkwise.results import ChoiceResult, CompletionResult, FunctionCall, ToolCallResult
from chunkwise.stream import aggregate, aggregate_sync, iter_events

__all__ = [
    "AggregationError",
    "AggregatorClosed",
    "ChoiceDelta",
    "ChoiceLogprobs",
    "ChoiceResult",
    "ChunkRecord",
    "CompletionResult",
    "CompletionTokensDetails",
    "ConflictingFinishReason",
    "Delta",
    "DuplicateUsage",
    "EmptyStream",
    "EnvelopeMismatch",
    "FinishReason",
    "FunctionCall",
    "FunctionDelta",
    "PromptTokensDetails",
    "ProtocolViolation",
    "RoleConflict",
    "StreamAggregator",
    "TokenLogprob",
    "ToolCallDelta",
    "ToolCallMismatch",
    "ToolCallResult",
    "Usage",
    "aggregate",
    "aggregate_sync",
    "instrument",
    "iter_events",
    "uninstrument",
]
