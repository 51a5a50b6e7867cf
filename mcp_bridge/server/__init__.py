"""MCP 工具服务。

通过 stdio 暴露：
- tools: execute-sql / list-tables / describe-table
- resources: postgres://schema
- prompts: sql-assistant

所有工具与资源的失败都以文本内容返回，不向客户端抛出异常。
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from pydantic import AnyUrl

from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.prompts import build_sql_assistant_prompt
from mcp_bridge.tools.definitions import ToolCall, ToolDescriptor
from mcp_bridge.tools.executor import (
    SCHEMA_RESOURCE_NAME,
    SCHEMA_RESOURCE_URI,
    SqlRunner,
    ToolExecutor,
    default_tool_defs,
    default_tools,
    read_schema_resource,
)

SERVER_NAME = "sql-tool-server"
SQL_ASSISTANT_PROMPT = "sql-assistant"


def to_mcp_tool(tool: ToolDescriptor) -> types.Tool:
    return types.Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema())


def schema_resource() -> types.Resource:
    return types.Resource(
        uri=SCHEMA_RESOURCE_URI,
        name=SCHEMA_RESOURCE_NAME,
        description="Complete PostgreSQL database schema information",
        mimeType="text/plain",
    )


def sql_assistant_prompt() -> types.Prompt:
    return types.Prompt(
        name=SQL_ASSISTANT_PROMPT,
        description="Help write PostgreSQL queries",
        arguments=[
            types.PromptArgument(
                name="task",
                description="What you want to accomplish with the database",
                required=True,
            ),
            types.PromptArgument(
                name="table",
                description="Specific table name (optional)",
                required=False,
            ),
        ],
    )


def build_server(runner: SqlRunner, schema: Optional[str] = None) -> Server:
    """组装 MCP Server，工具实现绑定到给定的 SqlRunner。"""

    server = Server(SERVER_NAME)
    tool_defs = default_tool_defs()
    executor = ToolExecutor(default_tools(runner, schema))

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [to_mcp_tool(t) for t in tool_defs]

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        logger.info("Tool called", extra={"extra": {"tool_name": name}})
        call = ToolCall(id=f"mcp-{name}", name=name, arguments=arguments or {})
        # SQLAlchemy 是同步驱动，放到线程里执行
        result = await asyncio.to_thread(executor.execute, call)
        return [types.TextContent(type="text", text=result.content)]

    @server.list_resources()
    async def list_resources() -> List[types.Resource]:
        return [schema_resource()]

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> List[ReadResourceContents]:
        if str(uri).rstrip("/") != SCHEMA_RESOURCE_URI:
            raise ValueError(f"Unknown resource: {uri}")
        logger.info("Schema resource requested")
        text = await asyncio.to_thread(read_schema_resource, runner, schema)
        return [ReadResourceContents(content=text, mime_type="text/plain")]

    @server.list_prompts()
    async def list_prompts() -> List[types.Prompt]:
        return [sql_assistant_prompt()]

    @server.get_prompt()
    async def get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
        if name != SQL_ASSISTANT_PROMPT:
            raise ValueError(f"Unknown prompt: {name}")
        args = arguments or {}
        if not args.get("task"):
            raise ValueError("Missing required argument: task")
        text = build_sql_assistant_prompt(args["task"], args.get("table"))
        return types.GetPromptResult(
            description="SQL Query Assistant",
            messages=[
                types.PromptMessage(role="user", content=types.TextContent(type="text", text=text)),
            ],
        )

    return server


async def serve(runner: SqlRunner, schema: Optional[str] = None) -> None:
    server = build_server(runner, schema)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("MCP tool server running", extra={"extra": {"tools": [t.name for t in default_tool_defs()]}})
        await server.run(read_stream, write_stream, server.create_initialization_options())
