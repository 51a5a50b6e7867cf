"""对外 HTTP 服务模块。

- POST /chat          单轮对话，必要时调用一次 MCP 工具
- GET  /health        MCP 连接与 Gemini 配置状态
- GET  /test-mcp      连接自检，列出工具
- GET  /resources/schema  读取数据库 schema 资源
"""

from contextlib import asynccontextmanager
from typing import Annotated, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mcp_bridge.api.schemas import ChatBody, ChatResponse, McpTestResponse, ResourceResponse, ToolSummary
from mcp_bridge.config.settings import settings
from mcp_bridge.domain.exceptions import BusinessError
from mcp_bridge.flows.orchestrator import ChatOrchestrator
from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.providers import create_provider
from mcp_bridge.tools.executor import SCHEMA_RESOURCE_URI
from mcp_bridge.transport.mcp_session import McpToolSession


@asynccontextmanager
async def lifespan(app: FastAPI):
    session = McpToolSession()
    app.state.orchestrator = ChatOrchestrator(session, create_provider())
    logger.info(
        "Starting MCP bridge",
        extra={"extra": {"gemini_configured": app.state.orchestrator.llm_configured}},
    )
    # 启动时连接失败不致命，首个请求会再尝试一次
    if not await session.connect():
        logger.error("Failed to initialize MCP client at startup")
    yield
    logger.info("Shutting down gracefully")
    await session.close()


def get_orchestrator(request: Request) -> ChatOrchestrator:
    return request.app.state.orchestrator


orchestrator_dep = Annotated[ChatOrchestrator, Depends(get_orchestrator)]


def create_app() -> FastAPI:
    app = FastAPI(title="Gemini MCP Bridge", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        # /chat 的请求体缺失、非 JSON 或形状不对，一律按缺少 prompt 处理
        if request.url.path == "/chat":
            logger.error("Invalid chat body", extra={"extra": {"errors": str(exc.errors())}})
            return JSONResponse(status_code=400, content={"error": "Prompt is required"})
        return await request_validation_exception_handler(request, exc)

    @app.post("/chat", response_model=ChatResponse)
    async def chat(orchestrator: orchestrator_dep, body: Annotated[Optional[ChatBody], Body()] = None):
        if body is None or not body.prompt:
            logger.error("No prompt provided")
            return JSONResponse(status_code=400, content={"error": "Prompt is required"})
        if not orchestrator.llm_configured:
            logger.error("Gemini API key not configured")
            return JSONResponse(status_code=500, content={"error": "Gemini API key not configured"})

        logger.info("New chat request received", extra={"extra": {"prompt": body.prompt}})
        try:
            turn = await orchestrator.handle(body.prompt)
        except BusinessError as exc:
            logger.error(
                f"Chat failed: {exc.message}",
                extra={"extra": {"code": exc.code, **exc.extra}},
            )
            return JSONResponse(status_code=exc.http_status, content={"error": exc.message, "code": exc.code})
        except Exception as exc:
            logger.exception("Error in chat endpoint")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "details": str(exc)},
            )
        return ChatResponse(response=turn.final_text)

    @app.get("/health")
    async def health(orchestrator: orchestrator_dep):
        session = orchestrator.session
        gemini_configured = orchestrator.llm_configured
        if not session.connected:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "MCP client not connected",
                    "mcpConnected": False,
                    "geminiConfigured": gemini_configured,
                },
            )
        try:
            tools = await session.list_tools()
        except Exception as exc:
            logger.error("Health check failed", extra={"extra": {"error": str(exc)}})
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "mcpConnected": False,
                    "geminiConfigured": gemini_configured,
                    "error": str(exc),
                },
            )
        return {
            "status": "healthy",
            "mcpConnected": True,
            "geminiConfigured": gemini_configured,
            "availableTools": len(tools),
            "tools": [t.name for t in tools],
        }

    @app.get("/test-mcp", response_model=McpTestResponse)
    async def test_mcp(orchestrator: orchestrator_dep):
        session = orchestrator.session
        try:
            await session.ensure_connected()
        except BusinessError:
            return JSONResponse(status_code=500, content={"error": "Cannot connect to MCP server"})
        try:
            tools = await session.list_tools()
        except Exception as exc:
            logger.error("MCP test failed", extra={"extra": {"error": str(exc)}})
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return McpTestResponse(
            message="MCP connection test successful",
            tools=[ToolSummary(name=t.name, description=t.description) for t in tools],
        )

    @app.get("/resources/schema", response_model=ResourceResponse)
    async def schema_resource(orchestrator: orchestrator_dep):
        session = orchestrator.session
        try:
            await session.ensure_connected()
            text = await session.read_resource(SCHEMA_RESOURCE_URI)
        except BusinessError as exc:
            return JSONResponse(status_code=exc.http_status, content={"error": exc.message})
        except Exception as exc:
            logger.error("Reading schema resource failed", extra={"extra": {"error": str(exc)}})
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return ResourceResponse(uri=SCHEMA_RESOURCE_URI, text=text)

    return app


app = create_app()


def main(host: Optional[str] = None, port: Optional[int] = None) -> int:
    """启动 HTTP 服务；uvicorn 负责 SIGINT/SIGTERM，正常退出返回 0。"""

    try:
        uvicorn.run(app, host=host or settings.host, port=port or settings.port)
    except Exception:
        logger.exception("Bridge failed to start")
        return 1
    return 0
