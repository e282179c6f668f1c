"""
Unit tests for travelog/api/llm.py

OpenRouter calls go through a real OpenAI SDK client whose transport is an
httpx.MockTransport; Gemini is tested with google.generativeai patched out.
"""
import json
from unittest.mock import MagicMock, PropertyMock, patch

import httpx
import pytest
from google.api_core import exceptions as google_exceptions

from travelog.api.errors import ConfigurationError, UpstreamEmptyResponse, UpstreamError
from travelog.api.llm import GeminiClient, OpenRouterClient

MESSAGES = [
    {"role": "system", "content": "You are a travel planner."},
    {"role": "user", "content": "Plan a day in Paris."},
]


def _completion(content):
    return {
        "id": "gen-1",
        "object": "chat.completion",
        "created": 0,
        "model": "anthropic/claude-3.5-sonnet",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
    }


def _client(handler, **kwargs):
    return OpenRouterClient(
        api_key="sk-test",
        default_model="anthropic/claude-3.5-sonnet",
        site_url="https://example.test",
        site_name="Travelog",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


class TestOpenRouterClient:

    def test_returns_message_content(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion('{"ok": true}'))

        result = _client(handler).invoke(MESSAGES, temperature=0.2, max_tokens=500, json_mode=True)

        assert result == '{"ok": true}'
        assert seen["url"] == "https://openrouter.ai/api/v1/chat/completions"
        assert seen["headers"]["authorization"] == "Bearer sk-test"
        assert seen["headers"]["http-referer"] == "https://example.test"
        assert seen["headers"]["x-title"] == "Travelog"
        assert seen["body"]["model"] == "anthropic/claude-3.5-sonnet"
        assert seen["body"]["messages"] == MESSAGES
        assert seen["body"]["temperature"] == 0.2
        assert seen["body"]["max_tokens"] == 500
        assert seen["body"]["response_format"] == {"type": "json_object"}

    def test_model_override(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion("hi"))

        _client(handler).invoke(MESSAGES, model="openai/gpt-4o")
        assert seen["body"]["model"] == "openai/gpt-4o"
        assert "response_format" not in seen["body"]

    def test_server_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={"error": {"message": "provider down"}})

        with pytest.raises(UpstreamError) as excinfo:
            _client(handler).invoke(MESSAGES)

        assert excinfo.value.status == 500
        assert "provider down" in excinfo.value.body
        assert len(calls) == 1

    def test_rate_limit_status_is_kept(self):
        def handler(request):
            return httpx.Response(429, json={"error": {"message": "slow down"}})

        with pytest.raises(UpstreamError) as excinfo:
            _client(handler).invoke(MESSAGES)
        assert excinfo.value.status == 429

    def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError) as excinfo:
            _client(handler).invoke(MESSAGES)
        assert excinfo.value.status is None

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_content(self, content):
        def handler(request):
            return httpx.Response(200, json=_completion(content))

        with pytest.raises(UpstreamEmptyResponse):
            _client(handler).invoke(MESSAGES)

    def test_no_choices(self):
        def handler(request):
            body = _completion("x")
            body["choices"] = []
            return httpx.Response(200, json=body)

        with pytest.raises(UpstreamEmptyResponse):
            _client(handler).invoke(MESSAGES)


class TestGeminiClient:

    @pytest.fixture
    def genai(self):
        with patch("travelog.api.llm.genai") as mock_genai, patch.object(GeminiClient, "_configured_key", None):
            yield mock_genai

    def test_split_messages(self):
        system, contents = GeminiClient._split_messages(MESSAGES + [
            {"role": "assistant", "content": "Sure."},
            {"role": "user", "content": "Thanks"},
        ])
        assert system == "You are a travel planner."
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[1]["parts"] == ["Sure."]

    def test_returns_text(self, genai):
        genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(text='{"a": 1}')
        client = GeminiClient("gem-key", "gemini-1.5-flash", timeout=12)

        assert client.invoke(MESSAGES, json_mode=True) == '{"a": 1}'

        genai.configure.assert_called_once_with(api_key="gem-key")
        genai.GenerativeModel.assert_called_once_with(
            "gemini-1.5-flash", system_instruction="You are a travel planner."
        )
        kwargs = genai.GenerativeModel.return_value.generate_content.call_args.kwargs
        assert kwargs["request_options"] == {"timeout": 12}

    def test_api_error(self, genai):
        genai.GenerativeModel.return_value.generate_content.side_effect = (
            google_exceptions.InternalServerError("boom")
        )
        with pytest.raises(UpstreamError) as excinfo:
            GeminiClient("gem-key", "gemini-1.5-flash").invoke(MESSAGES)
        assert excinfo.value.status == 500

    def test_blocked_response(self, genai):
        response = MagicMock()
        type(response).text = PropertyMock(side_effect=ValueError("blocked"))
        genai.GenerativeModel.return_value.generate_content.return_value = response

        with pytest.raises(UpstreamEmptyResponse):
            GeminiClient("gem-key", "gemini-1.5-flash").invoke(MESSAGES)

    def test_empty_text(self, genai):
        genai.GenerativeModel.return_value.generate_content.return_value = MagicMock(text="")
        with pytest.raises(UpstreamEmptyResponse):
            GeminiClient("gem-key", "gemini-1.5-flash").invoke(MESSAGES)

    def test_same_key_may_be_reused(self, genai):
        GeminiClient("gem-key", "gemini-1.5-flash")
        GeminiClient("gem-key", "gemini-1.5-pro")
        assert genai.configure.call_count == 2

    def test_second_key_is_rejected(self, genai):
        GeminiClient("gem-key", "gemini-1.5-flash")
        with pytest.raises(ConfigurationError):
            GeminiClient("other-key", "gemini-1.5-flash")
        genai.configure.assert_called_once_with(api_key="gem-key")
