"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供具体实现 (gemini_client)。
"""

from typing import Optional

from mcp_bridge.config.settings import settings
from mcp_bridge.domain.exceptions import ConfigurationError
from mcp_bridge.providers.base import ProviderClient
from mcp_bridge.providers.gemini_client import GeminiClient
from mcp_bridge.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 provider。"""

    provider_name = name or getattr(settings, "default_provider", "gemini")
    try:
        cfg = get_provider_config(provider_name)
    except KeyError:
        raise ConfigurationError(code="UNKNOWN_PROVIDER", message=f"Unknown provider: {provider_name!r}")
    if cfg.name == "gemini":
        return GeminiClient(settings)
    raise ConfigurationError(code="UNKNOWN_PROVIDER", message=f"Provider {cfg.name!r} has no client")
