import pytest

from chunkwise.aggregator import StreamAggregator
from chunkwise.chunk import ChunkRecord


# ---------------------------------------------------------------------------
# Chunk builders (mirror the wire shape of chat.completion.chunk)
# ---------------------------------------------------------------------------

def make_chunk(
    *choices: dict,
    usage: dict | None = None,
    id: str | None = "chatcmpl-123",
    created: int = 1726300000,
    model: str = "gpt-test",
    object: str = "chat.completion.chunk",
    **envelope,
) -> ChunkRecord:
    """Decode a chunk from its wire dict form."""
    payload = {
        "id": id,
        "created": created,
        "model": model,
        "object": object,
        "choices": list(choices),
        **envelope,
    }
    if usage is not None:
        payload["usage"] = usage
    return ChunkRecord.model_validate(payload)


def choice(
    index: int = 0,
    content: str | None = None,
    role: str | None = None,
    refusal: str | None = None,
    tool_calls: list[dict] | None = None,
    finish_reason: str | None = None,
    logprobs: dict | None = None,
) -> dict:
    """Wire dict for one choice delta."""
    delta = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    if refusal is not None:
        delta["refusal"] = refusal
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    out = {"index": index, "delta": delta, "finish_reason": finish_reason}
    if logprobs is not None:
        out["logprobs"] = logprobs
    return out


def tool_call(
    index: int | None = None,
    id: str | None = None,
    name: str | None = None,
    arguments: str | None = None,
    type: str | None = None,
) -> dict:
    """Wire dict for one tool-call fragment."""
    out: dict = {}
    if index is not None:
        out["index"] = index
    if id is not None:
        out["id"] = id
        out["type"] = type or "function"
    elif type is not None:
        out["type"] = type
    function = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    if function:
        out["function"] = function
    return out


def text_stream(*fragments: str, index: int = 0, finish_reason: str = "stop") -> list[ChunkRecord]:
    """Chunks for a plain text reply: role, fragments, then finish."""
    chunks = [make_chunk(choice(index, role="assistant", content=""))]
    chunks += [make_chunk(choice(index, content=f)) for f in fragments]
    chunks.append(make_chunk(choice(index, finish_reason=finish_reason)))
    return chunks


async def async_chunks(chunks):
    for chunk in chunks:
        yield chunk


@pytest.fixture
def aggregator():
    return StreamAggregator()
