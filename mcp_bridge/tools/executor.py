from typing import Any, Callable, Dict, List, Optional, Protocol, Mapping
import json

from mcp_bridge.config.settings import settings
from mcp_bridge.domain.exceptions import ToolExecutionError
from mcp_bridge.infrastructure.logging.logger import logger
from .definitions import ToolCall, ToolResult, ToolDescriptor, ToolParam


ToolFunc = Callable[[Dict[str, Any]], str]

SCHEMA_RESOURCE_NAME = "database-schema"
SCHEMA_RESOURCE_URI = "postgres://schema"

LIST_TABLES_SQL = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = :schema ORDER BY table_name"
)
DESCRIBE_TABLE_SQL = (
    "SELECT column_name, data_type, is_nullable, column_default "
    "FROM information_schema.columns "
    "WHERE table_schema = :schema AND table_name = :table_name "
    "ORDER BY ordinal_position"
)
SCHEMA_SQL = (
    "SELECT table_name, column_name, data_type, is_nullable, column_default "
    "FROM information_schema.columns "
    "WHERE table_schema = :schema "
    "ORDER BY table_name, ordinal_position"
)


class SqlRunner(Protocol):
    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        ...


class ToolExecutor:
    """按名称分发工具调用，所有结果都是文本，异常不会穿出本层。"""

    def __init__(self, tools: Dict[str, ToolFunc]):
        self._tools = tools

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def execute(self, call: ToolCall) -> ToolResult:
        func = self._tools.get(call.name)
        if not func:
            logger.warning("Tool not registered", extra={"extra": {"tool_name": call.name}})
            return ToolResult(call_id=call.id, content="Tool not registered")
        try:
            result = func(call.arguments or {})
        except Exception as exc:  # noqa: BLE001 - 工具层只向外返回文本
            logger.exception("Tool crashed", extra={"extra": {"tool_name": call.name}})
            result = f"Tool error: {exc}"
        return ToolResult(call_id=call.id, content=result)


def format_rows(rows: List[Dict[str, Any]]) -> str:
    """以首行的列名为表头，输出 `a | b` 形式的文本表格。"""

    headers = list(rows[0].keys())
    lines = [" | ".join(headers)]
    for row in rows:
        lines.append(" | ".join(str(row.get(h)) for h in headers))
    return "\n".join(lines)


def _make_execute_sql_tool(runner: SqlRunner) -> ToolFunc:
    def _run(args: Dict[str, Any]) -> str:
        query = str(args.get("query") or "")
        logger.info("execute-sql called", extra={"extra": {"query": query}})
        try:
            rows = runner.execute(query)
        except ToolExecutionError as exc:
            return f"SQL Error: {exc.message}"
        if not rows:
            return "Query executed successfully! No rows returned."
        return f"Query executed successfully! Found {len(rows)} rows:\n\n{format_rows(rows)}"

    return _run


def _make_list_tables_tool(runner: SqlRunner, schema: str) -> ToolFunc:
    def _run(args: Dict[str, Any]) -> str:
        try:
            rows = runner.execute(LIST_TABLES_SQL, {"schema": schema})
        except ToolExecutionError as exc:
            return f"Error listing tables: {exc.message}"
        names = [row["table_name"] for row in rows]
        bullets = "\n".join(f"• {name}" for name in names)
        return f"Available tables ({len(names)}):\n{bullets}"

    return _run


def _make_describe_table_tool(runner: SqlRunner, schema: str) -> ToolFunc:
    def _run(args: Dict[str, Any]) -> str:
        table_name = str(args.get("tableName") or "").strip()
        try:
            rows = runner.execute(DESCRIBE_TABLE_SQL, {"schema": schema, "table_name": table_name})
        except ToolExecutionError as exc:
            return f"Error describing table: {exc.message}"
        if not rows:
            return f"Table '{table_name}' not found."
        columns = "\n".join(
            f"{col['column_name']} ({col['data_type']}) "
            f"{'NULL' if col['is_nullable'] == 'YES' else 'NOT NULL'}"
            for col in rows
        )
        return f"Table '{table_name}' structure:\n\n{columns}"

    return _run


def read_schema_resource(runner: SqlRunner, schema: Optional[str] = None) -> str:
    """`postgres://schema` 资源：所有表的所有列，JSON 文本。"""

    try:
        rows = runner.execute(SCHEMA_SQL, {"schema": schema or settings.db_schema})
    except ToolExecutionError as exc:
        return f"Error fetching schema: {exc.message}"
    return f"PostgreSQL Database Schema:\n\n{json.dumps(rows, indent=2, ensure_ascii=False, default=str)}"


def default_tools(runner: SqlRunner, schema: Optional[str] = None) -> Dict[str, ToolFunc]:
    db_schema = schema or settings.db_schema
    return {
        "execute-sql": _make_execute_sql_tool(runner),
        "list-tables": _make_list_tables_tool(runner, db_schema),
        "describe-table": _make_describe_table_tool(runner, db_schema),
    }


def default_tool_defs() -> List[ToolDescriptor]:
    return [
        ToolDescriptor(
            name="execute-sql",
            description="Run a SQL query on the PostgreSQL database",
            params={
                "query": ToolParam(
                    name="query",
                    description="The SQL query to execute",
                    required=True,
                    schema={"type": "string"},
                )
            },
        ),
        ToolDescriptor(
            name="list-tables",
            description="Get a list of all tables in the PostgreSQL database",
            params={},
        ),
        ToolDescriptor(
            name="describe-table",
            description="Get column information for a specific table",
            params={
                "tableName": ToolParam(
                    name="tableName",
                    description="Name of the table to describe",
                    required=True,
                    schema={"type": "string"},
                )
            },
        ),
    ]
