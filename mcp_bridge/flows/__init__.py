from mcp_bridge.flows.orchestrator import ChatOrchestrator

__all__ = ["ChatOrchestrator"]
