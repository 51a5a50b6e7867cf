"""State definition for the tool-selection graph."""

from __future__ import annotations

from typing import List, Literal, Optional, TypedDict

from mcp_bridge.domain.turn import ToolDecision
from mcp_bridge.tools.definitions import ToolDescriptor, ToolResult

Outcome = Literal["execute", "answer", "fallback"]


class SelectionState(TypedDict, total=False):
    """State shared across graph nodes for a single request."""

    prompt: str
    tools: List[ToolDescriptor]
    raw_decision: Optional[str]
    decision: Optional[ToolDecision]
    outcome: Optional[Outcome]
    tool_result: Optional[ToolResult]
    final_response: Optional[str]
