"""MCP client session over a stdio subprocess."""

from __future__ import annotations

import asyncio
import os
import sys
from contextlib import AsyncExitStack
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from pydantic import AnyUrl

from mcp_bridge.config.settings import Settings, settings
from mcp_bridge.domain.exceptions import TransportError
from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.tools.definitions import ToolDescriptor, ToolResult

CLIENT_NAME = "gemini-mcp-client"


def descriptor_from_mcp(tool: types.Tool) -> ToolDescriptor:
    return ToolDescriptor.from_input_schema(tool.name, tool.description or "", tool.inputSchema or {})


def first_text(result: types.CallToolResult) -> str:
    """Text of the first content block; non-text blocks yield an empty string."""

    if not result.content:
        return ""
    block = result.content[0]
    return getattr(block, "text", "") or ""


class McpToolSession:
    """Long-lived connection to the tool server.

    Created once per process and owned by the orchestrator. The connection
    is established with ``connect()`` and lazily re-established by
    ``ensure_connected()`` after a detected disconnect.
    """

    def __init__(self, params: Optional[StdioServerParameters] = None, cfg: Settings = settings) -> None:
        self._params = params or StdioServerParameters(
            command=cfg.mcp_server_command or sys.executable,
            args=list(cfg.mcp_server_args),
            env=dict(os.environ),
        )
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None
        self._connected = False
        self._reconnect_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._connected and self._session is not None

    async def connect(self) -> bool:
        """Spawn the tool server and run the MCP handshake. Returns success."""

        await self.close()
        logger.info(
            "Connecting to MCP server",
            extra={"extra": {"command": self._params.command, "args": self._params.args}},
        )
        stack = AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(stdio_client(self._params))
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
        except Exception:
            logger.exception("Failed to initialize MCP client")
            await self._close_stack(stack)
            return False
        self._stack = stack
        self._session = session
        self._connected = True
        logger.info("Connected to MCP server")
        return True

    async def ensure_connected(self) -> None:
        if self.connected:
            return
        # 并发请求只允许一个去重连，其余等待后复查状态
        async with self._reconnect_lock:
            if self.connected:
                return
            logger.info("MCP client not connected, attempting to reconnect")
            if not await self.connect():
                raise TransportError(code="MCP_UNAVAILABLE", message="MCP client not available")

    async def list_tools(self) -> List[ToolDescriptor]:
        session = self._require_session()
        try:
            result = await session.list_tools()
        except Exception:
            self._connected = False
            raise
        return [descriptor_from_mcp(t) for t in result.tools]

    async def call_tool(self, name: str, arguments: Dict[str, Any], call_id: str = "") -> ToolResult:
        session = self._require_session()
        try:
            result = await session.call_tool(name, arguments=arguments)
        except Exception:
            self._connected = False
            raise
        if result.isError:
            logger.warning("Tool returned an error result", extra={"extra": {"tool_name": name}})
        return ToolResult(call_id=call_id or name, content=first_text(result))

    async def read_resource(self, uri: str) -> str:
        session = self._require_session()
        try:
            result = await session.read_resource(AnyUrl(uri))
        except Exception:
            self._connected = False
            raise
        texts = [c.text for c in result.contents if isinstance(c, types.TextResourceContents)]
        return "\n".join(texts)

    async def close(self) -> None:
        stack, self._stack = self._stack, None
        self._session = None
        self._connected = False
        if stack is not None:
            logger.info("Closing MCP transport")
            await self._close_stack(stack)

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise TransportError(code="MCP_NOT_CONNECTED", message="MCP client not connected")
        return self._session

    @staticmethod
    async def _close_stack(stack: AsyncExitStack) -> None:
        # stdio_client 的 task group 必须在创建它的任务里退出，跨任务关闭会报错，只记录不抛出
        try:
            await stack.aclose()
        except Exception as exc:  # noqa: BLE001
            logger.error("Error closing MCP transport", extra={"extra": {"error": str(exc)}})
