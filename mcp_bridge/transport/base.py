"""Transport abstraction between the bridge and the tool server.

The orchestrator depends on this protocol only, so the MCP stdio session
can be swapped for an in-process fake in tests.
"""

from typing import Any, Dict, List, Protocol

from mcp_bridge.tools.definitions import ToolDescriptor, ToolResult


class ToolSession(Protocol):
    @property
    def connected(self) -> bool:
        ...

    async def ensure_connected(self) -> None:
        """Reconnect once if needed; raise TransportError on failure."""
        ...

    async def list_tools(self) -> List[ToolDescriptor]:
        ...

    async def call_tool(self, name: str, arguments: Dict[str, Any], call_id: str = "") -> ToolResult:
        ...

    async def read_resource(self, uri: str) -> str:
        ...

    async def close(self) -> None:
        ...
