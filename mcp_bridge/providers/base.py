"""Provider 抽象接口。

编排层不直接依赖具体厂商的 HTTP 接口，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（目前为 GeminiClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应 JSON 解析为 ChatResult。
"""

from typing import Protocol
from mcp_bridge.domain.models import ChatRequest, ChatResult


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - is_configured(): 是否具备调用所需的凭据。
    - chat(req): 执行一次非流式补全调用，返回统一的 ChatResult。
    """

    name: str

    def is_configured(self) -> bool:
        ...

    def chat(self, req: ChatRequest) -> ChatResult:
        ...
