"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / ChatRequest / ChatResult 模型。
- turn: ToolDecision 标签联合与单次请求的 ConversationTurn。
- exceptions: 业务异常类型定义。
"""
