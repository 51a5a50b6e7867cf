"""Gemini Provider 适配器。

使用 generateContent 端点：
- URL: {base_url}/models/{model}:generateContent?key=<api_key>
- 请求体: {"contents": [{"role": "user", "parts": [{"text": ...}]}]}
- 回答取 candidates[0].content.parts[0].text，缺失时返回占位文本。
"""

from typing import Any, Dict, List

import httpx

from mcp_bridge.config.settings import settings
from mcp_bridge.domain.exceptions import ApiError, ConfigurationError, NetworkError, RateLimitError
from mcp_bridge.domain.models import (
    ChatChoice,
    ChatMessage,
    ChatRequest,
    ChatResult,
    ChatUsage,
)
from mcp_bridge.infrastructure.logging.logger import logger
from mcp_bridge.providers.registry import GEMINI_CONFIG, ModelConfig

NO_RESPONSE_TEXT = "No response from Gemini."


class GeminiClient:
    """Gemini Provider 客户端实现。"""

    name = "gemini"

    def __init__(self, cfg=settings):
        self._settings = cfg

    def is_configured(self) -> bool:
        return bool(getattr(self._settings, "gemini_api_key", None))

    def chat(self, req: ChatRequest) -> ChatResult:
        if not self.is_configured():
            raise ConfigurationError(code="MISSING_API_KEY", message="Gemini API key not configured")
        model_cfg = self._model_config(req.model)
        payload = self._build_payload(req)
        base = getattr(self._settings, "gemini_base_url", None) or GEMINI_CONFIG.base_url
        logger.info(
            "Calling Gemini API",
            extra={"extra": {"model": model_cfg.provider_model, "prompt_chars": sum(len(m.content) for m in req.messages)}},
        )
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base}/models/{model_cfg.provider_model}:generateContent",
                    params={"key": self._settings.gemini_api_key},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Gemini rate limit")
        if resp.status_code >= 400:
            logger.error(
                "Gemini API error",
                extra={"extra": {"status": resp.status_code, "body": resp.text[:500]}},
            )
            raise ApiError(
                code="API_ERROR",
                message="Failed to communicate with Gemini API",
                upstream_status=resp.status_code,
            )
        data = resp.json()
        return self._parse_response(data, req)

    # ---- 辅助方法 ----

    @staticmethod
    def _model_config(model: str) -> ModelConfig:
        try:
            return GEMINI_CONFIG.models[model]
        except KeyError:
            raise ConfigurationError(code="UNKNOWN_MODEL", message=f"Unknown Gemini model: {model!r}")

    def _build_payload(self, req: ChatRequest) -> dict:
        return {"contents": [self._message_to_payload(m) for m in req.messages]}

    @staticmethod
    def _message_to_payload(message: ChatMessage) -> Dict[str, Any]:
        # Gemini 中助手角色叫 "model"
        role = "model" if message.role == "assistant" else "user"
        return {"role": role, "parts": [{"text": message.content}]}

    def _parse_response(self, data: dict, req: ChatRequest) -> ChatResult:
        choices: List[ChatChoice] = []
        for i, cand in enumerate(data.get("candidates") or []):
            parts = (cand.get("content") or {}).get("parts") or []
            text = parts[0].get("text") if parts else None
            choices.append(
                ChatChoice(
                    index=cand.get("index", i),
                    message=ChatMessage(role="assistant", content=text or NO_RESPONSE_TEXT),
                    finish_reason=cand.get("finishReason"),
                )
            )
        if not choices:
            choices.append(ChatChoice(index=0, message=ChatMessage(role="assistant", content=NO_RESPONSE_TEXT)))
        usage_raw = data.get("usageMetadata") or {}
        usage = None
        if usage_raw:
            usage = ChatUsage(
                prompt_tokens=usage_raw.get("promptTokenCount", 0),
                completion_tokens=usage_raw.get("candidatesTokenCount", 0),
                total_tokens=usage_raw.get("totalTokenCount", 0),
            )
        return ChatResult(provider="gemini", model=req.model, choices=choices, usage=usage, raw=data)
