"""Unit tests for single-slot tool-call reassembly."""

import pytest

from chunkwise.chunk import FunctionDelta, ToolCallDelta
from chunkwise.errors import ToolCallMismatch
from chunkwise.results import FunctionCall, ToolCallResult
from chunkwise.tool_calls import ToolCallAccumulator


def frag(id=None, type=None, name=None, arguments=None):
    function = None
    if name is not None or arguments is not None:
        function = FunctionDelta(name=name, arguments=arguments)
    return ToolCallDelta(id=id, type=type, function=function)


class TestToolCallAccumulator:
    def test_single_fragment(self):
        acc = ToolCallAccumulator(index=0, choice_index=0)
        acc.apply(frag(id="c1", type="function", name="echo", arguments='{"text": "hi"}'))

        assert acc.snapshot() == ToolCallResult(
            index=0, id="c1", type="function",
            function=FunctionCall(name="echo", arguments='{"text": "hi"}'),
        )

    def test_arguments_accumulated_across_fragments(self):
        acc = ToolCallAccumulator(index=0, choice_index=0)
        acc.apply(frag(id="c1", name="get_weather", arguments='{"city":'))
        acc.apply(frag(arguments='"Paris"}'))

        result = acc.snapshot()
        assert result.function.name == "get_weather"
        assert result.function.arguments == '{"city":"Paris"}'
        assert result.parse_arguments() == {"city": "Paris"}

    def test_intermediate_arguments_need_not_be_valid_json(self):
        acc = ToolCallAccumulator(index=0, choice_index=0)
        acc.apply(frag(id="c1", name="f", arguments='{"a": [1,'))

        assert acc.snapshot().function.arguments == '{"a": [1,'

    def test_repeated_identical_values_are_accepted(self):
        acc = ToolCallAccumulator(index=0, choice_index=0)
        acc.apply(frag(id="c1", type="function", name="f", arguments="{"))
        acc.apply(frag(id="c1", type="function", name="f", arguments="}"))

        assert acc.snapshot().function == FunctionCall(name="f", arguments="{}")

    def test_absent_fields_do_not_erase(self):
        acc = ToolCallAccumulator(index=0, choice_index=0)
        acc.apply(frag(id="c1", type="function", name="f"))
        acc.apply(frag(id="", name="", arguments="{}"))

        result = acc.snapshot()
        assert (result.id, result.type, result.function.name) == ("c1", "function", "f")

    def test_differing_id_raises(self):
        acc = ToolCallAccumulator(index=2, choice_index=1)
        acc.apply(frag(id="c1"))

        with pytest.raises(ToolCallMismatch) as exc_info:
            acc.apply(frag(id="c2"))

        err = exc_info.value
        assert err.field == "id"
        assert (err.expected, err.actual) == ("c1", "c2")
        assert err.choice_index == 1
        assert err.tool_call_index == 2
        assert "choice 1" in str(err) and "tool call 2" in str(err)

    def test_differing_name_raises(self):
        acc = ToolCallAccumulator(index=0, choice_index=0)
        acc.apply(frag(name="get_weather"))

        with pytest.raises(ToolCallMismatch, match="function.name"):
            acc.apply(frag(name="get_time"))

    def test_snapshot_is_a_copy(self):
        acc = ToolCallAccumulator(index=0, choice_index=0)
        acc.apply(frag(id="c1", name="f", arguments="{"))
        before = acc.snapshot()
        acc.apply(frag(arguments="}"))

        assert before.function.arguments == "{"
        assert acc.snapshot().function.arguments == "{}"
