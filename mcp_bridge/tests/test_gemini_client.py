import httpx
import pytest

from mcp_bridge.domain.exceptions import ApiError, ConfigurationError, NetworkError, RateLimitError
from mcp_bridge.domain.models import ChatMessage, ChatRequest
from mcp_bridge.providers.gemini_client import NO_RESPONSE_TEXT, GeminiClient


class SettingsStub:
    gemini_api_key = "g"
    http_timeout = 1.0
    gemini_base_url = "https://example.test/v1"


def _request(text="hi"):
    return ChatRequest(provider="gemini", model="chat", messages=[ChatMessage(role="user", content=text)])


def _fake_client(monkeypatch, status_code=200, body=None, error=None):
    sent = {}

    class Resp:
        def __init__(self):
            self.status_code = status_code
            self.text = "upstream says no"

        def json(self):
            return body or {}

    class Client:
        def __init__(self, *a, **kw):
            sent["client_kwargs"] = kw

        def __enter__(self):
            return self

        def __exit__(self, *a):
            return False

        def post(self, url, **kw):
            if error:
                raise error
            sent["url"] = url
            sent.update(kw)
            return Resp()

    monkeypatch.setattr("httpx.Client", Client)
    return sent


def test_gemini_client_basic(monkeypatch):
    body = {
        "candidates": [{"content": {"role": "model", "parts": [{"text": "ok"}]}, "finishReason": "STOP"}],
        "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 1, "totalTokenCount": 4},
    }
    sent = _fake_client(monkeypatch, body=body)
    res = GeminiClient(SettingsStub()).chat(_request())

    assert res.text == "ok"
    assert res.usage.total_tokens == 4
    assert sent["url"] == "https://example.test/v1/models/gemini-2.0-flash:generateContent"
    assert sent["params"] == {"key": "g"}
    assert sent["json"] == {"contents": [{"role": "user", "parts": [{"text": "hi"}]}]}
    assert sent["client_kwargs"]["timeout"] == 1.0


def test_missing_text_yields_placeholder(monkeypatch):
    _fake_client(monkeypatch, body={"candidates": [{"content": {"parts": []}}]})
    assert GeminiClient(SettingsStub()).chat(_request()).text == NO_RESPONSE_TEXT

    _fake_client(monkeypatch, body={})
    assert GeminiClient(SettingsStub()).chat(_request()).text == NO_RESPONSE_TEXT


def test_rate_limit_and_api_errors(monkeypatch):
    _fake_client(monkeypatch, status_code=429)
    with pytest.raises(RateLimitError):
        GeminiClient(SettingsStub()).chat(_request())

    _fake_client(monkeypatch, status_code=500)
    with pytest.raises(ApiError) as info:
        GeminiClient(SettingsStub()).chat(_request())
    assert info.value.message == "Failed to communicate with Gemini API"
    assert info.value.extra["upstream_status"] == 500


def test_network_error(monkeypatch):
    _fake_client(monkeypatch, error=httpx.ConnectError("connection refused"))
    with pytest.raises(NetworkError):
        GeminiClient(SettingsStub()).chat(_request())


def test_missing_key_is_configuration_error(monkeypatch):
    class NoKey(SettingsStub):
        gemini_api_key = None

    sent = _fake_client(monkeypatch)
    client = GeminiClient(NoKey())
    assert client.is_configured() is False
    with pytest.raises(ConfigurationError) as info:
        client.chat(_request())
    assert info.value.message == "Gemini API key not configured"
    assert "url" not in sent
