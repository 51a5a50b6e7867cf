"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层统一捕获并映射为 HTTP 响应。

约定：
- 工具执行内部的错误（ToolExecutionError）只在工具层内部抛出，
  由工具层转换为文本内容返回给模型，不会穿过 MCP 边界。
- 传输层 / 模型调用的错误会一直传播到请求层，变成失败响应。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "MISSING_API_KEY"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 tool_name、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class ConfigurationError(BusinessError):
    """缺少 API 密钥、数据库参数等配置错误。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)


class TransportError(BusinessError):
    """与 MCP 工具服务之间的通道不可用（重连一次后仍失败）。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)


class UpstreamAPIError(BusinessError):
    """LLM 接口调用失败，不做重试。"""

    def __init__(self, code: str, message: str, http_status: int = 500, **extra):
        super().__init__(code, message, http_status, **extra)


class NetworkError(UpstreamAPIError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(UpstreamAPIError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(UpstreamAPIError):
    """Provider 限流错误。"""


class ToolExecutionError(BusinessError):
    """工具执行失败，由工具层转换为文本结果。"""


class DatabaseError(ToolExecutionError):
    """SQL 执行失败，message 为底层驱动返回的错误信息。"""


class DecisionParseError(BusinessError):
    """模型输出无法解析为 JSON，总是在本地通过回退路径恢复。"""
