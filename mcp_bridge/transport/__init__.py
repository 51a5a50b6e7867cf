from mcp_bridge.transport.base import ToolSession
from mcp_bridge.transport.mcp_session import McpToolSession

__all__ = ["McpToolSession", "ToolSession"]
