"""
Tests for pulse/llm.py

Run with: pytest tests/test_llm.py
"""

from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from pulse.errors import RequestTimedOut, SynthesisError
from pulse.llm import CompletionClient

_REQUEST = httpx.Request("POST", "https://llm.test/v1/chat/completions")


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def mock_openai():
    with patch("pulse.llm.openai.OpenAI") as mock_cls:
        client = MagicMock()
        mock_cls.return_value = client
        yield mock_cls, client


class TestComplete:
    def test_returns_content_and_sends_contract(self, mock_openai):
        mock_cls, client = mock_openai
        client.chat.completions.create.return_value = _completion('{"overview": "ok"}')

        llm = CompletionClient("key", "https://llm.test/v1", timeout=7)
        text = llm.complete("system prompt", "corpus", model="m", temperature=0.5, max_tokens=100)

        assert text == '{"overview": "ok"}'
        mock_cls.assert_called_once_with(
            api_key="key", base_url="https://llm.test/v1", timeout=7, max_retries=0
        )
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "m"
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_tokens"] == 100
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"] == [
            {"role": "system", "content": "system prompt"},
            {"role": "user", "content": "corpus"},
        ]

    def test_plain_mode_without_system(self, mock_openai):
        _, client = mock_openai
        client.chat.completions.create.return_value = _completion("text")

        CompletionClient("key", "u").complete(None, "hi", model="m", json_mode=False)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert "response_format" not in kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "hi"}]

    def test_client_is_reused(self, mock_openai):
        mock_cls, client = mock_openai
        client.chat.completions.create.return_value = _completion("x")
        llm = CompletionClient("key", "u")
        llm.complete("s", "u", model="m")
        llm.complete("s", "u", model="m")
        assert mock_cls.call_count == 1

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_content(self, mock_openai, content):
        _, client = mock_openai
        client.chat.completions.create.return_value = _completion(content)

        with pytest.raises(SynthesisError, match="Analysis generation failed: No analysis generated"):
            CompletionClient("key", "u").complete("s", "u", model="m")

    def test_no_choices(self, mock_openai):
        _, client = mock_openai
        response = MagicMock()
        response.choices = []
        client.chat.completions.create.return_value = response

        with pytest.raises(SynthesisError, match="No analysis generated"):
            CompletionClient("key", "u").complete("s", "u", model="m")

    def test_status_error_carries_status_and_body(self, mock_openai):
        _, client = mock_openai
        client.chat.completions.create.side_effect = openai.APIStatusError(
            "rate limited",
            response=httpx.Response(429, request=_REQUEST),
            body={"error": {"message": "slow down"}},
        )

        with pytest.raises(SynthesisError) as info:
            CompletionClient("key", "u").complete("s", "u", model="m")
        assert str(info.value).startswith("Analysis generation failed: LLM API error (429):")
        assert "slow down" in str(info.value)

    def test_timeout(self, mock_openai):
        _, client = mock_openai
        client.chat.completions.create.side_effect = openai.APITimeoutError(request=_REQUEST)

        with pytest.raises(RequestTimedOut, match="Request timed out"):
            CompletionClient("key", "u").complete("s", "u", model="m")

    def test_connection_error(self, mock_openai):
        _, client = mock_openai
        client.chat.completions.create.side_effect = openai.APIConnectionError(request=_REQUEST)

        with pytest.raises(SynthesisError, match="unreachable"):
            CompletionClient("key", "u").complete("s", "u", model="m")


class TestListModels:
    def test_returns_ids(self, mock_openai):
        _, client = mock_openai
        client.models.list.return_value = [MagicMock(id="a"), MagicMock(id="b")]
        assert CompletionClient("key", "u").list_models() == ["a", "b"]
