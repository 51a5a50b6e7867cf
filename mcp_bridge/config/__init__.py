from mcp_bridge.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
