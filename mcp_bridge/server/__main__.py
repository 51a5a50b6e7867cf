"""`python -m mcp_bridge.server`：以 stdio 方式启动 MCP 工具服务。"""

import asyncio
import sys

from mcp_bridge.config.settings import settings
from mcp_bridge.infrastructure.database.query_executor import QueryExecutor
from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.server import serve


def main() -> int:
    try:
        executor = QueryExecutor.from_settings(settings)
    except Exception:
        logger.exception("Failed to configure database")
        return 1
    logger.info("Starting MCP tool server", extra={"extra": {"database": settings.db_name}})
    try:
        asyncio.run(serve(executor, settings.db_schema))
    except KeyboardInterrupt:
        logger.info("MCP tool server interrupted")
    except Exception:
        logger.exception("MCP tool server failed")
        return 1
    finally:
        executor.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
