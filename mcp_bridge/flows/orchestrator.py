"""High-level request lifecycle: transport -> tools -> selection -> answer."""

from __future__ import annotations

import time
from typing import List, Optional

from mcp_bridge.config.settings import settings
from mcp_bridge.domain.turn import ConversationTurn
from mcp_bridge.flows.graph import build_graph, general_conversation
from mcp_bridge.flows.state import SelectionState
from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.providers.base import ProviderClient
from mcp_bridge.tools.definitions import ToolDescriptor
from mcp_bridge.transport.base import ToolSession


class ChatOrchestrator:
    """Owns the tool session and the compiled selection graph.

    One instance per process; ``handle`` keeps all per-request data in the
    returned ConversationTurn.
    """

    def __init__(self, session: ToolSession, provider: ProviderClient, model: Optional[str] = None) -> None:
        self.session = session
        self.provider = provider
        self.model = model or getattr(settings, "default_model", "chat")
        self._graph = build_graph(session, provider, self.model)

    @property
    def llm_configured(self) -> bool:
        return self.provider.is_configured()

    async def handle(self, prompt: str) -> ConversationTurn:
        """执行一次完整请求，返回包含最终回答的 ConversationTurn。

        Raises:
            TransportError: 工具服务不可用且重连失败。
            UpstreamAPIError / ConfigurationError: 模型调用失败。
        """
        start_time = time.time()
        await self.session.ensure_connected()
        tools = await self._fetch_tools()
        turn = ConversationTurn(prompt=prompt, tools_snapshot=tools)

        if not tools:
            logger.info("No tools available, processing as general conversation")
            turn.final_text = await general_conversation(self.provider, self.model, prompt)
        else:
            state: SelectionState = {
                "prompt": prompt,
                "tools": tools,
                "raw_decision": None,
                "decision": None,
                "outcome": None,
                "tool_result": None,
                "final_response": None,
            }
            result = await self._graph.ainvoke(state)
            turn.decision = result.get("decision")
            turn.tool_result = result.get("tool_result")
            turn.final_text = result.get("final_response") or ""

        logger.info(
            "Completed chat turn",
            extra={"extra": {
                "elapsed_seconds": round(time.time() - start_time, 2),
                "decision": type(turn.decision).__name__ if turn.decision else None,
                "response_chars": len(turn.final_text),
            }},
        )
        return turn

    async def _fetch_tools(self) -> List[ToolDescriptor]:
        try:
            tools = await self.session.list_tools()
        except Exception as exc:  # noqa: BLE001 - 拉取失败按“无工具”处理
            logger.warning("Could not fetch tools", extra={"extra": {"error": str(exc)}})
            return []
        logger.info("Tools fetched", extra={"extra": {"tools": [t.name for t in tools]}})
        return tools
