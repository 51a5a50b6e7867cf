"""提示词模板加载与拼装。

模板文件与本模块放在同一目录（*.md），使用 string.Template 的 $name
占位符，避免与模板里的 JSON 花括号冲突。
"""

import json
from pathlib import Path
from string import Template
from typing import Any, Dict, Iterable, Optional

from mcp_bridge.tools.definitions import ToolDescriptor


PROMPTS_DIR = Path(__file__).resolve().parent


def load_prompt(name: str) -> Template:
    fname = PROMPTS_DIR / f"{name}.md"
    return Template(fname.read_text(encoding="utf-8"))


def format_tools_for_prompt(tools: Iterable[ToolDescriptor]) -> str:
    """编号列出工具：`1. "name" - description - Parameters: {...}`。"""

    lines = []
    for index, tool in enumerate(tools, start=1):
        if tool.params:
            params = ", ".join(
                f'"{name}": "{param.description or param.schema.get("type", "")}"'
                for name, param in tool.params.items()
            )
        else:
            params = "no parameters"
        lines.append(f'{index}. "{tool.name}" - {tool.description} - Parameters: {{{params}}}')
    return "\n".join(lines)


def build_tool_selection_prompt(user_request: str, tools: Iterable[ToolDescriptor], timestamp_ms: int) -> str:
    return load_prompt("tool_selection").substitute(
        user_request=user_request,
        tools=format_tools_for_prompt(tools),
        timestamp=timestamp_ms,
    )


def build_tools_context(tools: Iterable[ToolDescriptor]) -> str:
    """通用对话回退时附在用户输入后面的非结构化工具说明。"""

    items = "\n- ".join(f"{t.name}: {t.description}" for t in tools)
    return f"Available tools if needed:\n- {items}"


def build_explanation_prompt(
    user_request: str,
    tool_name: str,
    invocation_id: str,
    arguments: Dict[str, Any],
    tool_output: str,
) -> str:
    return load_prompt("explanation").substitute(
        user_request=user_request,
        tool_name=tool_name,
        invocation_id=invocation_id,
        arguments=json.dumps(arguments, ensure_ascii=False),
        tool_output=tool_output,
    )


def build_sql_assistant_prompt(task: str, table: Optional[str] = None) -> str:
    focus = f"\n\nFocusing on table: {table}" if table else ""
    return load_prompt("sql_assistant").substitute(task=task, focus=focus)
