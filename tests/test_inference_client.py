"""
TaskChat - Inference Client Tests

The OpenAI client is mocked; no network access.
"""

import httpx
import openai
import pytest
from openai import AsyncOpenAI
from unittest.mock import AsyncMock, MagicMock

from taskchat.config import settings
from taskchat.chat.llm import (
    InferenceClient,
    InferenceNotConfiguredError,
    InferenceAuthError,
    InferenceTimeoutError,
    InferenceUnavailableError,
    InferenceResponseError,
    build_timeout,
)
from taskchat.chat.prompts import HEALTH_CHECK_PROMPT
from taskchat.security import validate_inference_config


REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def completion(content):
    """Minimal chat completion envelope."""
    response = MagicMock()
    if content is None:
        response.choices = []
    else:
        choice = MagicMock()
        choice.message.content = content
        response.choices = [choice]
    return response


def status_error(cls, code):
    return cls(
        f"Error code: {code}",
        response=httpx.Response(code, request=REQUEST),
        body=None,
    )


@pytest.fixture
def openai_client():
    mock = MagicMock()
    mock.chat.completions.create = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def inference(openai_client):
    return InferenceClient(model="test-model", client=openai_client)


class TestConfiguration:

    @pytest.mark.parametrize("key", ["", "   "])
    def test_missing_key_raises(self, key):
        with pytest.raises(InferenceNotConfiguredError):
            InferenceClient(api_key=key)

    def test_missing_key_in_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "LLM_API_KEY", None)
        with pytest.raises(InferenceNotConfiguredError):
            InferenceClient()

    async def test_client_has_no_retries_and_split_timeouts(self):
        client = InferenceClient(api_key="test-key", base_url="https://api.example.test/v1")
        try:
            assert client._client.max_retries == 0
            assert client.model == settings.MODEL_NAME
        finally:
            await client.close()

    def test_timeouts(self):
        timeout = build_timeout()
        assert timeout.connect == settings.LLM_CONNECT_TIMEOUT
        assert timeout.write == settings.LLM_CONNECT_TIMEOUT
        assert timeout.read == settings.LLM_READ_TIMEOUT

    def test_validate_inference_config_without_key(self, monkeypatch, caplog):
        monkeypatch.setattr(settings, "LLM_API_KEY", "")
        with caplog.at_level("ERROR"):
            assert validate_inference_config() is None
        assert any("not configured" in r.getMessage() for r in caplog.records)


class TestComplete:

    async def test_returns_first_choice(self, inference, openai_client):
        openai_client.chat.completions.create.return_value = completion('{"action": "LIST_TASKS"}')

        assert await inference.complete("prompt") == '{"action": "LIST_TASKS"}'

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]
        assert kwargs["temperature"] == settings.LLM_TEMPERATURE
        assert kwargs["max_tokens"] == settings.LLM_MAX_TOKENS
        assert kwargs["top_p"] == settings.LLM_TOP_P

    async def test_no_choices(self, inference, openai_client):
        openai_client.chat.completions.create.return_value = completion(None)
        with pytest.raises(InferenceResponseError):
            await inference.complete("prompt")

    @pytest.mark.parametrize("content", ["", "   "])
    async def test_empty_content(self, inference, openai_client, content):
        openai_client.chat.completions.create.return_value = completion(content)
        with pytest.raises(InferenceResponseError):
            await inference.complete("prompt")

    @pytest.mark.parametrize("error,expected", [
        (status_error(openai.AuthenticationError, 401), InferenceAuthError),
        (status_error(openai.PermissionDeniedError, 403), InferenceAuthError),
        (status_error(openai.InternalServerError, 503), InferenceUnavailableError),
        (status_error(openai.RateLimitError, 429), InferenceUnavailableError),
        (openai.APITimeoutError(request=REQUEST), InferenceTimeoutError),
        (openai.APIConnectionError(request=REQUEST), InferenceUnavailableError),
    ])
    async def test_errors_are_mapped(self, inference, openai_client, error, expected):
        openai_client.chat.completions.create.side_effect = error
        with pytest.raises(expected):
            await inference.complete("prompt")

    async def test_called_once_without_retry(self, inference, openai_client):
        openai_client.chat.completions.create.side_effect = openai.APITimeoutError(request=REQUEST)
        with pytest.raises(InferenceTimeoutError):
            await inference.complete("prompt")
        assert openai_client.chat.completions.create.await_count == 1


class TestPrompts:

    async def test_classify_message_prompt(self, inference, openai_client):
        from datetime import date
        openai_client.chat.completions.create.return_value = completion("{}")

        await inference.classify_message("Create a task to buy groceries", today=date(2025, 1, 15))

        prompt = openai_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert 'User message: "Create a task to buy groceries"' in prompt
        assert "Today's date: 2025-01-15" in prompt
        for action in ("CREATE_TASK", "LIST_TASKS", "UPDATE_TASK", "DELETE_TASK",
                       "MARK_COMPLETE", "BULK_MARK_COMPLETE", "GENERAL_HELP"):
            assert action in prompt

    async def test_extract_tasks_prompt(self, inference, openai_client):
        openai_client.chat.completions.create.return_value = completion('{"tasks": []}')

        await inference.extract_tasks("Call the bank by Friday")

        prompt = openai_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert 'Text: "Call the bank by Friday"' in prompt
        assert '"tasks"' in prompt

    async def test_close(self, inference, openai_client):
        await inference.close()
        openai_client.close.assert_awaited_once()


def mock_transport_client(payload):
    """Real AsyncOpenAI whose HTTP layer answers every request with `payload`."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    return AsyncOpenAI(
        api_key="test-key",
        base_url="https://api.example.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class TestMalformedEnvelope:
    """Envelopes decoded by the real SDK rather than a mock."""

    @pytest.mark.parametrize("payload", [
        {"choices": [{}]},
        {"choices": [{"index": 0, "message": None}]},
        {"choices": [{"index": 0, "message": {"role": "assistant"}}]},
        {"choices": []},
    ])
    async def test_unusable_choice_raises_response_error(self, payload):
        inference = InferenceClient(model="test-model", client=mock_transport_client(payload))
        try:
            with pytest.raises(InferenceResponseError):
                await inference.complete("prompt")
        finally:
            await inference.close()

    async def test_well_formed_envelope(self):
        payload = {
            "id": "cmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": "test-model",
            "choices": [{
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": '{"action": "LIST_TASKS"}'},
            }],
        }
        inference = InferenceClient(model="test-model", client=mock_transport_client(payload))
        try:
            assert await inference.complete("prompt") == '{"action": "LIST_TASKS"}'
        finally:
            await inference.close()


class TestHealthCheck:

    async def test_healthy(self, inference, openai_client):
        openai_client.chat.completions.create.return_value = completion("OK")

        await inference.check_health()

        prompt = openai_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert prompt == HEALTH_CHECK_PROMPT

    async def test_unhealthy_raises(self, inference, openai_client):
        openai_client.chat.completions.create.side_effect = openai.APIConnectionError(request=REQUEST)
        with pytest.raises(InferenceUnavailableError):
            await inference.check_health()
