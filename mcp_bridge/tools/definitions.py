"""工具数据结构定义。

这些 dataclass 描述了“工具调用”的 schema，既用于：
- MCP 工具服务对外暴露工具列表（ToolDescriptor / ToolParam）。
- Bridge 侧把工具列表写进选择提示词，并保存执行结果（ToolCall / ToolResult）。
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List


@dataclass(frozen=True)
class ToolParam:
    """单个工具参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]


@dataclass(frozen=True)
class ToolDescriptor:
    """一个可供 LLM 选择的工具定义，注册后不可变。"""

    name: str
    description: str
    params: Dict[str, ToolParam] = field(default_factory=dict)

    def input_schema(self) -> Dict[str, Any]:
        """转换为 JSON Schema（MCP inputSchema）。"""

        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in self.params.items():
            schema = param.schema or {"type": "string"}
            if param.description:
                schema = {**schema, "description": param.description}
            properties[name] = schema
            if param.required:
                required.append(name)
        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    @classmethod
    def from_input_schema(cls, name: str, description: str, input_schema: Dict[str, Any]) -> "ToolDescriptor":
        """从 JSON Schema 还原参数定义（MCP 客户端侧使用）。"""

        properties = (input_schema or {}).get("properties") or {}
        required = set((input_schema or {}).get("required") or [])
        params: Dict[str, ToolParam] = {}
        for pname, raw in properties.items():
            raw = dict(raw or {})
            pdesc = raw.pop("description", "") or ""
            params[pname] = ToolParam(name=pname, description=pdesc, required=pname in required, schema=raw)
        return cls(name=name, description=description or "", params=params)


@dataclass
class ToolCall:
    """模型发起的一次工具调用请求。"""

    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class ToolResult:
    """工具执行结果的封装（文本形式）。"""

    call_id: str
    content: str
