"""单次请求内的决策与对话记录。

ToolDecision 是一个标签联合：ToolInvocation 或 DirectAnswer。
ConversationTurn 只在一次请求内存在，不做持久化。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from mcp_bridge.tools.definitions import ToolDescriptor, ToolResult


@dataclass(frozen=True)
class ToolInvocation:
    """模型选择调用某个工具。"""

    tool_name: str
    invocation_id: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DirectAnswer:
    """模型选择直接回答。"""

    text: str


ToolDecision = Union[ToolInvocation, DirectAnswer]


@dataclass
class ConversationTurn:
    prompt: str
    tools_snapshot: List[ToolDescriptor] = field(default_factory=list)
    decision: Optional[ToolDecision] = None
    tool_result: Optional[ToolResult] = None
    final_text: str = ""
