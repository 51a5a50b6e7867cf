import pytest

from mcp_bridge.domain.exceptions import DecisionParseError
from mcp_bridge.domain.turn import DirectAnswer, ToolInvocation
from mcp_bridge.flows.decision import parse_decision_json, resolve_decision, strip_code_fence
from mcp_bridge.tools.executor import default_tool_defs


TOOLS = default_tool_defs()
TOOL_USE = '{"type": "tool_use", "name": "describe-table", "id": "tool-1", "input": {"tableName": "users"}}'


def test_strip_code_fence_variants():
    assert strip_code_fence("  {\"a\": 1}  ") == '{"a": 1}'
    assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('Here you go:\n```\n{"a": 1}\n```\nthanks') == '{"a": 1}'


def test_fenced_and_unfenced_parse_identically():
    fenced = f"```json\n{TOOL_USE}\n```"
    plain = resolve_decision(TOOL_USE, TOOLS)
    assert resolve_decision(fenced, TOOLS) == plain
    assert plain == ToolInvocation(tool_name="describe-table", invocation_id="tool-1", arguments={"tableName": "users"})


def test_text_decision():
    assert resolve_decision('{"type": "text", "text": "X"}', TOOLS) == DirectAnswer(text="X")


def test_invalid_json_means_fallback():
    assert resolve_decision("I would run list-tables", TOOLS) is None
    with pytest.raises(DecisionParseError):
        parse_decision_json("{not json")


def test_unknown_tool_means_fallback():
    raw = '{"type": "tool_use", "name": "drop-everything", "id": "tool-9", "input": {}}'
    assert resolve_decision(raw, TOOLS) is None


@pytest.mark.parametrize(
    "raw",
    [
        '{"answer": 42}',
        '[1, 2, 3]',
        '{"type": "tool_use", "input": {}}',
        '{"type": "text", "text": 5}',
    ],
)
def test_unexpected_shapes_return_raw_text(raw):
    assert resolve_decision(raw, TOOLS) == DirectAnswer(text=raw)


def test_missing_id_and_input_are_filled():
    decision = resolve_decision('{"type": "tool_use", "name": "list-tables"}', TOOLS)
    assert isinstance(decision, ToolInvocation)
    assert decision.invocation_id.startswith("tool-")
    assert decision.arguments == {}


def test_json_null_means_fallback():
    assert resolve_decision("null", TOOLS) is None
    assert resolve_decision("```json\nnull\n```", TOOLS) is None
