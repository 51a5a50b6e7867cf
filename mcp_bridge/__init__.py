"""MCP Bridge 顶层包。

该包把 LLM 文本接口（Gemini）与 MCP 工具服务连接起来：
配置加载、领域模型、Provider 适配、SQL 工具服务、
MCP 传输会话、工具选择流程与 HTTP 接口。
"""

from mcp_bridge.flows import ChatOrchestrator

__all__ = ["ChatOrchestrator"]
