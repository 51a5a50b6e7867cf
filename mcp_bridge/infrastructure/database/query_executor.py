"""SQL 执行层。

QueryExecutor 只负责“执行一条 SQL 并返回行”，不做事务管理：
所有语句在 AUTOCOMMIT 模式下执行。需要绑定的值通过 params 传入，
上层不得把值直接拼接进 SQL 文本。
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError

from mcp_bridge.config.settings import Settings, settings
from mcp_bridge.domain.exceptions import DatabaseError
from mcp_bridge.infrastructure.logging.logger import logger


def build_database_url(cfg: Settings = settings) -> str | URL:
    if cfg.database_url:
        return cfg.database_url
    return URL.create(
        "postgresql+psycopg",
        username=cfg.db_user,
        password=cfg.db_password,
        host=cfg.db_host,
        port=cfg.db_port,
        database=cfg.db_name,
    )


def _driver_message(exc: SQLAlchemyError) -> str:
    # DBAPIError.orig 是驱动原始异常，其 str 即驱动报错
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig).strip()
    return str(exc)


class QueryExecutor:
    """在共享连接池上执行 SQL。"""

    def __init__(self, url: str | URL, **engine_kwargs: Any):
        self._engine: Engine = create_engine(
            url,
            isolation_level="AUTOCOMMIT",
            pool_pre_ping=True,
            **engine_kwargs,
        )

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "QueryExecutor":
        url = build_database_url(cfg)
        kwargs: Dict[str, Any] = {}
        if not str(url).startswith("sqlite"):
            kwargs = {"pool_size": cfg.db_pool_size, "max_overflow": cfg.db_max_overflow}
        return cls(url, **kwargs)

    @property
    def engine(self) -> Engine:
        return self._engine

    def execute(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        """执行 SQL，返回 [{列名: 值}]；不返回行的语句得到空列表。

        Raises:
            DatabaseError: 语句非法或执行失败，message 为驱动错误信息。
        """
        try:
            with self._engine.connect() as conn:
                result = conn.execute(text(sql), dict(params or {}))
                if not result.returns_rows:
                    return []
                return [dict(row._mapping) for row in result]
        except SQLAlchemyError as exc:
            message = _driver_message(exc)
            logger.error("Query failed", extra={"extra": {"error": message}})
            raise DatabaseError(code="DATABASE_ERROR", message=message) from exc

    def dispose(self) -> None:
        self._engine.dispose()
