"""LangGraph construction and node implementations.

Deciding -> Executing (optional) -> Answered:

    decide --execute--> execute --> END
           --answer---> answer  --> END
           --fallback-> fallback --> END
"""

from __future__ import annotations

import asyncio
import time
from typing import Iterable, Optional

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from mcp_bridge.domain.models import ChatMessage, ChatRequest
from mcp_bridge.domain.turn import DirectAnswer, ToolInvocation
from mcp_bridge.flows.decision import resolve_decision
from mcp_bridge.flows.state import SelectionState
from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.prompts import build_explanation_prompt, build_tool_selection_prompt, build_tools_context
from mcp_bridge.providers.base import ProviderClient
from mcp_bridge.tools.definitions import ToolDescriptor
from mcp_bridge.transport.base import ToolSession


async def call_llm(provider: ProviderClient, model: str, prompt: str) -> str:
    """Single-turn completion, no history. Provider errors propagate."""

    req = ChatRequest(provider=provider.name, model=model, messages=[ChatMessage(role="user", content=prompt)])
    result = await asyncio.to_thread(provider.chat, req)
    return result.text


async def general_conversation(
    provider: ProviderClient,
    model: str,
    prompt: str,
    tools: Optional[Iterable[ToolDescriptor]] = None,
) -> str:
    tools = list(tools or [])
    full_prompt = f"{prompt}\n\n{build_tools_context(tools)}" if tools else prompt
    logger.info("General conversation", extra={"extra": {"prompt_chars": len(full_prompt), "tools": len(tools)}})
    return await call_llm(provider, model, full_prompt)


async def decide_node(state: SelectionState, provider: ProviderClient, model: str) -> SelectionState:
    tools = state["tools"]
    selection_prompt = build_tool_selection_prompt(state["prompt"], tools, int(time.time() * 1000))
    logger.info("decide_node.start", extra={"extra": {"tools": [t.name for t in tools]}})
    raw = await call_llm(provider, model, selection_prompt)
    decision = resolve_decision(raw, tools)
    state["raw_decision"] = raw
    state["decision"] = decision
    if decision is None:
        state["outcome"] = "fallback"
    elif isinstance(decision, ToolInvocation):
        state["outcome"] = "execute"
    else:
        state["outcome"] = "answer"
    logger.info("decide_node.end", extra={"extra": {"outcome": state["outcome"]}})
    return state


async def execute_node(state: SelectionState, session: ToolSession, provider: ProviderClient, model: str) -> SelectionState:
    invocation = state.get("decision")
    if not isinstance(invocation, ToolInvocation):
        logger.error("execute_node.no_invocation", extra={"extra": {"decision": repr(invocation)}})
        return await fallback_node(state, provider, model)
    logger.info(
        "execute_node.call_tool",
        extra={"extra": {"tool_name": invocation.tool_name, "tool_id": invocation.invocation_id, "arguments": invocation.arguments}},
    )
    result = await session.call_tool(invocation.tool_name, invocation.arguments, invocation.invocation_id)
    state["tool_result"] = result
    explanation_prompt = build_explanation_prompt(
        state["prompt"],
        invocation.tool_name,
        invocation.invocation_id,
        invocation.arguments,
        result.content,
    )
    state["final_response"] = await call_llm(provider, model, explanation_prompt)
    return state


def answer_node(state: SelectionState) -> SelectionState:
    decision = state.get("decision")
    if isinstance(decision, DirectAnswer):
        state["final_response"] = decision.text
    else:
        logger.error("answer_node.no_direct_answer", extra={"extra": {"decision": repr(decision)}})
        state["final_response"] = state.get("raw_decision") or ""
    return state


async def fallback_node(state: SelectionState, provider: ProviderClient, model: str) -> SelectionState:
    state["final_response"] = await general_conversation(provider, model, state["prompt"], state["tools"])
    return state


def decision_router(state: SelectionState) -> str:
    return state.get("outcome") or "fallback"


def build_graph(session: ToolSession, provider: ProviderClient, model: str) -> CompiledStateGraph:
    async def _decide(state: SelectionState) -> SelectionState:
        return await decide_node(state, provider, model)

    async def _execute(state: SelectionState) -> SelectionState:
        return await execute_node(state, session, provider, model)

    async def _fallback(state: SelectionState) -> SelectionState:
        return await fallback_node(state, provider, model)

    graph = StateGraph(SelectionState)
    graph.add_node("decide", _decide)
    graph.add_node("execute", _execute)
    graph.add_node("answer", answer_node)
    graph.add_node("fallback", _fallback)
    graph.set_entry_point("decide")
    graph.add_conditional_edges(
        "decide",
        decision_router,
        {"execute": "execute", "answer": "answer", "fallback": "fallback"},
    )
    graph.add_edge("execute", END)
    graph.add_edge("answer", END)
    graph.add_edge("fallback", END)
    return graph.compile()
