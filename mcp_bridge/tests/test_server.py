import asyncio

import mcp.types as types
import pytest

from mcp_bridge.prompts import build_sql_assistant_prompt
from mcp_bridge.server import SQL_ASSISTANT_PROMPT, build_server, schema_resource, to_mcp_tool
from mcp_bridge.tools.executor import SCHEMA_RESOURCE_URI, default_tool_defs


class FakeRunner:
    def __init__(self, rows=None):
        self.rows = rows or []

    def execute(self, sql, params=None):
        return list(self.rows)


def test_to_mcp_tool_schema():
    tool = to_mcp_tool(default_tool_defs()[0])
    assert tool.name == "execute-sql"
    assert tool.inputSchema == {
        "type": "object",
        "properties": {"query": {"type": "string", "description": "The SQL query to execute"}},
        "required": ["query"],
    }


def test_schema_resource_descriptor():
    resource = schema_resource()
    assert str(resource.uri).rstrip("/") == SCHEMA_RESOURCE_URI
    assert resource.name == "database-schema"


def test_handlers_registered():
    server = build_server(FakeRunner(), "public")
    for request_type in (
        types.ListToolsRequest,
        types.CallToolRequest,
        types.ListResourcesRequest,
        types.ReadResourceRequest,
        types.ListPromptsRequest,
        types.GetPromptRequest,
    ):
        assert request_type in server.request_handlers


def test_list_tools_handler():
    server = build_server(FakeRunner(), "public")
    handler = server.request_handlers[types.ListToolsRequest]
    result = asyncio.run(handler(types.ListToolsRequest(method="tools/list")))
    assert [t.name for t in result.root.tools] == ["execute-sql", "list-tables", "describe-table"]


def test_get_prompt_handler():
    server = build_server(FakeRunner(), "public")
    handler = server.request_handlers[types.GetPromptRequest]
    request = types.GetPromptRequest(
        method="prompts/get",
        params=types.GetPromptRequestParams(name=SQL_ASSISTANT_PROMPT, arguments={"task": "count users", "table": "users"}),
    )
    result = asyncio.run(handler(request))
    text = result.root.messages[0].content.text
    assert text == build_sql_assistant_prompt("count users", "users")
    assert text.startswith("I need help writing a PostgreSQL query to: count users\n\nFocusing on table: users")


def test_sql_assistant_prompt_without_table():
    text = build_sql_assistant_prompt("find duplicate emails")
    assert "Focusing on table" not in text
    assert text.endswith("Please provide a well-formatted SQL query with proper PostgreSQL syntax.")


def test_call_tool_handler_returns_text_block():
    server = build_server(FakeRunner(rows=[{"one": 1}]), "public")
    handler = server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="execute-sql", arguments={"query": "SELECT 1 AS one"}),
    )
    result = asyncio.run(handler(request))
    assert result.root.isError is False
    assert result.root.content[0].type == "text"
    assert result.root.content[0].text == "Query executed successfully! Found 1 rows:\n\none\n1"


def test_read_resource_handler_schema():
    rows = [{"table_name": "users", "column_name": "id", "data_type": "integer", "is_nullable": "NO", "column_default": None}]
    server = build_server(FakeRunner(rows=rows), "public")
    handler = server.request_handlers[types.ReadResourceRequest]
    request = types.ReadResourceRequest(
        method="resources/read",
        params=types.ReadResourceRequestParams(uri=SCHEMA_RESOURCE_URI),
    )
    result = asyncio.run(handler(request))
    text = result.root.contents[0].text
    assert text.startswith("PostgreSQL Database Schema:\n\n")
    assert '"table_name": "users"' in text


def test_read_resource_handler_unknown_uri():
    server = build_server(FakeRunner(), "public")
    handler = server.request_handlers[types.ReadResourceRequest]
    request = types.ReadResourceRequest(
        method="resources/read",
        params=types.ReadResourceRequestParams(uri="postgres://other"),
    )
    with pytest.raises(ValueError, match="Unknown resource"):
        asyncio.run(handler(request))
