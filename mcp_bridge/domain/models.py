"""统一的对话与结果数据模型。

本模块定义了 Bridge 与 LLM Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（user/assistant）。
- ChatRequest: 发给底层 LLM Provider 的完整请求。
- ChatResult: 从 Provider 解析后的统一响应结果。

Provider 适配器（如 GeminiClient）只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Any, Dict, List


# LLM 消息角色类型
Role = Literal["user", "assistant"]


@dataclass
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色。
    - content: 纯文本内容。
    - meta: 附加元数据，不发给 Provider，仅用于日志。
    """

    role: Role
    content: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ChatRequest:
    """一次完整的单轮补全请求。

    Bridge 不保留多轮历史，messages 通常只有一条 user 消息。
    """

    provider: str  # 逻辑 Provider 名，如 "gemini"
    model: str  # 逻辑模型名，如 "chat"（再由 registry 映射为真实模型名）
    messages: List[ChatMessage]


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（只使用 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次对话调用的最终结果。

    - provider: 逻辑 Provider 名。
    - model: 逻辑模型名。
    - choices: 一个或多个候选回答。
    - usage: 可选的 token 使用统计。
    - raw: 原始响应 JSON，用于调试或日志记录。
    """

    provider: str
    model: str
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""
