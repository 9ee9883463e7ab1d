"""
Unit tests for the OpenRouter and Anthropic adapters.
"""

import asyncio
from unittest.mock import patch

import httpx
import pytest

from conftest import (
    SHARED_MODEL,
    anthropic_body,
    json_response,
    make_client,
    openrouter_body,
    text_response,
)

from aidispatch.providers import (
    AIRequest,
    AnthropicAdapter,
    FailureType,
    Malformed,
    OpenRouterAdapter,
    Parsed,
)


def _request(model: str = SHARED_MODEL, **kwargs) -> AIRequest:
    return AIRequest(prompt="Summarize the incident", model=model, **kwargs)


# =============================================================================
# Wire format
# =============================================================================


class TestOpenRouterWireFormat:
    """Tests for the chat-completions request shape."""

    @pytest.mark.asyncio
    async def test_payload_and_headers(self, openrouter_config):
        client = make_client(json_response(200, openrouter_body()))
        adapter = OpenRouterAdapter(openrouter_config, client=client)

        await adapter.send(_request(max_tokens=200, temperature=0.2))

        args, kwargs = client.post.call_args
        assert args[0] == "https://openrouter.test/api/v1/chat/completions"
        assert kwargs["json"] == {
            "model": SHARED_MODEL,
            "messages": [{"role": "user", "content": "Summarize the incident"}],
            "max_tokens": 200,
            "temperature": 0.2,
        }
        assert kwargs["headers"]["Authorization"] == "Bearer sk-or-test"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["X-Title"] == "aidispatch tests"
        assert kwargs["timeout"] == 30.0

    def test_defaults_applied_when_omitted(self, openrouter_config):
        adapter = OpenRouterAdapter(openrouter_config)
        payload = adapter.build_payload(_request())
        assert payload["max_tokens"] == 1000
        assert payload["temperature"] == 0.7

    def test_explicit_zero_temperature_is_sent(self, openrouter_config):
        adapter = OpenRouterAdapter(openrouter_config)
        payload = adapter.build_payload(_request(temperature=0.0))
        assert payload["temperature"] == 0.0

    def test_output_schema_becomes_response_format(self, openrouter_config):
        adapter = OpenRouterAdapter(openrouter_config)
        schema = {"name": "questions", "strict": True, "schema": {"type": "object"}}
        payload = adapter.build_payload(_request(output_schema=schema))
        assert payload["response_format"] == {"type": "json_schema", "json_schema": schema}


class TestAnthropicWireFormat:
    """Tests for the messages request shape."""

    @pytest.mark.asyncio
    async def test_payload_and_headers(self, anthropic_config):
        client = make_client(json_response(200, anthropic_body()))
        adapter = AnthropicAdapter(anthropic_config, client=client)

        await adapter.send(_request(max_tokens=300))

        args, kwargs = client.post.call_args
        assert args[0] == "https://anthropic.test/v1/messages"
        assert kwargs["json"] == {
            "model": SHARED_MODEL,
            "max_tokens": 300,
            "messages": [{"role": "user", "content": "Summarize the incident"}],
        }
        assert kwargs["headers"]["x-api-key"] == "sk-ant-test"
        assert kwargs["headers"]["anthropic-version"] == "2023-06-01"
        assert "Authorization" not in kwargs["headers"]
        assert kwargs["timeout"] == 60.0

    def test_model_map_translates_identifier(self, anthropic_config):
        adapter = AnthropicAdapter(anthropic_config)
        payload = adapter.build_payload(_request(model="claude-3-haiku"))
        assert payload["model"] == "claude-3-haiku-20240307"

    def test_temperature_only_when_requested(self, anthropic_config):
        adapter = AnthropicAdapter(anthropic_config)
        assert "temperature" not in adapter.build_payload(_request())
        assert adapter.build_payload(_request(temperature=0.3))["temperature"] == 0.3


# =============================================================================
# Successful responses
# =============================================================================


class TestSuccess:
    """Tests for parsing 2xx bodies."""

    @pytest.mark.asyncio
    async def test_openrouter_success(self, openrouter_config):
        body = openrouter_body(
            "All good", usage={"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150}
        )
        adapter = OpenRouterAdapter(openrouter_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request(correlation_id="ai-1"))

        assert response.success is True
        assert response.content == "All good"
        assert response.error is None
        assert response.tokens_used == 150
        # 100/1000 * 0.001 + 50/1000 * 0.002
        assert response.cost == pytest.approx(0.0002)
        assert response.provider == "OpenRouter"
        assert response.model == SHARED_MODEL
        assert response.correlation_id == "ai-1"
        assert response.finish_reason == "stop"
        assert response.failure_type is None
        assert response.processing_time_ms > 0

    @pytest.mark.asyncio
    async def test_openrouter_total_only_usage(self, openrouter_config):
        body = openrouter_body(usage={"total_tokens": 2000})
        adapter = OpenRouterAdapter(openrouter_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request())

        assert response.tokens_used == 2000
        assert response.cost == pytest.approx(0.002)

    @pytest.mark.asyncio
    async def test_anthropic_success(self, anthropic_config):
        body = anthropic_body("Hello", usage={"input_tokens": 10, "output_tokens": 15})
        adapter = AnthropicAdapter(anthropic_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request())

        assert response.success is True
        assert response.content == "Hello"
        assert response.tokens_used == 25
        assert response.cost == pytest.approx(10 / 1000 * 0.003 + 15 / 1000 * 0.015)
        assert response.finish_reason == "end_turn"

    @pytest.mark.asyncio
    async def test_null_content_becomes_literal_null(self, openrouter_config):
        adapter = OpenRouterAdapter(
            openrouter_config, client=make_client(json_response(200, openrouter_body(None)))
        )

        response = await adapter.send(_request())

        assert response.success is True
        assert response.content == "null"

    @pytest.mark.asyncio
    async def test_null_text_becomes_literal_null_anthropic(self, anthropic_config):
        adapter = AnthropicAdapter(
            anthropic_config, client=make_client(json_response(200, anthropic_body(None)))
        )

        response = await adapter.send(_request())

        assert response.success is True
        assert response.content == "null"


# =============================================================================
# Usage extraction
# =============================================================================


class TestUsage:
    """Tests for partial usage handling."""

    @pytest.mark.asyncio
    async def test_input_only_usage(self, anthropic_config):
        body = anthropic_body(usage={"input_tokens": 400})
        adapter = AnthropicAdapter(anthropic_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request())

        assert response.tokens_used == 400
        assert response.cost == pytest.approx(400 / 1000 * 0.003)

    @pytest.mark.asyncio
    async def test_output_only_usage(self, anthropic_config):
        body = anthropic_body(usage={"output_tokens": 100})
        adapter = AnthropicAdapter(anthropic_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request())

        assert response.tokens_used == 100
        assert response.cost == pytest.approx(100 / 1000 * 0.015)

    @pytest.mark.asyncio
    async def test_no_usage_block(self, anthropic_config):
        adapter = AnthropicAdapter(
            anthropic_config, client=make_client(json_response(200, anthropic_body()))
        )

        response = await adapter.send(_request())

        assert response.success is True
        assert response.tokens_used is None
        assert response.cost is None

    @pytest.mark.asyncio
    async def test_unpriced_model_has_tokens_but_no_cost(self, openrouter_config):
        body = openrouter_body(usage={"total_tokens": 42})
        adapter = OpenRouterAdapter(openrouter_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request(model="openai/unpriced"))

        assert response.tokens_used == 42
        assert response.cost is None

    @pytest.mark.asyncio
    async def test_garbage_usage_values_ignored(self, anthropic_config):
        body = anthropic_body(usage={"input_tokens": "ten", "output_tokens": -3})
        adapter = AnthropicAdapter(anthropic_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request())

        assert response.tokens_used is None
        assert response.cost is None


# =============================================================================
# HTTP errors
# =============================================================================


class TestHttpErrors:
    """Tests for non-2xx handling."""

    @pytest.mark.asyncio
    async def test_error_message_format(self, openrouter_config):
        adapter = OpenRouterAdapter(
            openrouter_config, client=make_client(text_response(500, "upstream exploded"))
        )

        response = await adapter.send(_request())

        assert response.success is False
        assert response.content == ""
        assert response.error == "OpenRouter API error: 500 Internal Server Error - upstream exploded"
        assert response.failure_type == FailureType.SERVER_ERROR
        assert response.processing_time_ms > 0

    @pytest.mark.asyncio
    async def test_large_error_body_preserved(self, anthropic_config):
        body = "x" * 100_000
        adapter = AnthropicAdapter(anthropic_config, client=make_client(text_response(400, body)))

        response = await adapter.send(_request())

        assert response.error == f"Anthropic API error: 400 Bad Request - {body}"
        assert response.error.endswith(body)
        assert response.failure_type == FailureType.BAD_REQUEST

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,expected",
        [
            (401, FailureType.AUTHENTICATION),
            (403, FailureType.AUTHENTICATION),
            (429, FailureType.RATE_LIMIT),
            (503, FailureType.SERVER_ERROR),
            (404, FailureType.BAD_REQUEST),
        ],
    )
    async def test_status_classification(self, openrouter_config, status, expected):
        adapter = OpenRouterAdapter(
            openrouter_config, client=make_client(text_response(status, "{}"))
        )

        response = await adapter.send(_request())

        assert response.failure_type == expected
        assert response.error.startswith(f"OpenRouter API error: {status} ")


# =============================================================================
# Malformed bodies
# =============================================================================


class TestMalformed:
    """Tests for 2xx bodies that do not match the provider shape."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"choices": []},
            {"choices": [{}]},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": ""}}]},
            {"choices": [{"message": {"content": 12}}]},
            ["not", "an", "object"],
        ],
    )
    async def test_openrouter_invalid_shapes(self, openrouter_config, body):
        adapter = OpenRouterAdapter(openrouter_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request())

        assert response.success is False
        assert response.error == "Invalid response format from OpenRouter API"
        assert response.failure_type == FailureType.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"content": []},
            {"content": [{}]},
            {"content": [{"type": "text"}]},
            {"content": "Hello"},
            {"usage": {"input_tokens": 1}},
        ],
    )
    async def test_anthropic_invalid_shapes(self, anthropic_config, body):
        adapter = AnthropicAdapter(anthropic_config, client=make_client(json_response(200, body)))

        response = await adapter.send(_request())

        assert response.error == "Invalid response format from Anthropic API"
        assert response.failure_type == FailureType.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_non_json_body(self, openrouter_config):
        adapter = OpenRouterAdapter(
            openrouter_config, client=make_client(text_response(200, "<html>gateway</html>"))
        )

        response = await adapter.send(_request())

        assert response.success is False
        assert response.error == "Invalid response format from OpenRouter API"

    def test_parse_body_returns_tagged_outcomes(self, anthropic_config):
        adapter = AnthropicAdapter(anthropic_config)

        assert isinstance(adapter.parse_body(anthropic_body("ok")), Parsed)
        assert isinstance(adapter.parse_body({"content": []}), Malformed)


# =============================================================================
# Transport errors
# =============================================================================


class TestTransportErrors:
    """Tests for exceptions raised by the HTTP client."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("[Errno 111] Connection refused"),
            httpx.ReadTimeout("The read operation timed out"),
            httpx.ConnectError("[Errno -2] Name or service not known"),
        ],
    )
    async def test_exception_message_is_unwrapped(self, openrouter_config, error):
        adapter = OpenRouterAdapter(openrouter_config, client=make_client(error))

        response = await adapter.send(_request())

        assert response.success is False
        assert response.error == str(error)
        assert response.failure_type == FailureType.TRANSPORT
        assert response.processing_time_ms > 0

    @pytest.mark.asyncio
    async def test_empty_exception_message_uses_class_name(self, anthropic_config):
        adapter = AnthropicAdapter(anthropic_config, client=make_client(httpx.ConnectTimeout("")))

        response = await adapter.send(_request())

        assert response.error == "ConnectTimeout"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, anthropic_config):
        adapter = AnthropicAdapter(anthropic_config, client=make_client(RuntimeError("boom")))

        response = await adapter.send(_request())

        assert response.success is False
        assert response.error == "boom"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, anthropic_config):
        adapter = AnthropicAdapter(
            anthropic_config, client=make_client(asyncio.CancelledError())
        )

        with pytest.raises(asyncio.CancelledError):
            await adapter.send(_request())


def test_supports_model_is_exact(openrouter_config):
    adapter = OpenRouterAdapter(openrouter_config)
    assert adapter.supports_model(SHARED_MODEL) is True
    assert adapter.supports_model("shared-model") is False
    assert adapter.supports_model("prefix-shared-model-X") is False


@pytest.mark.asyncio
async def test_opens_own_client_with_provider_timeout(anthropic_config):
    """Without an injected client a short-lived one is opened per call."""
    client = make_client(json_response(200, anthropic_body("Hello")))
    client.__aenter__.return_value = client
    client.__aexit__.return_value = False

    with patch("aidispatch.providers.base.httpx.AsyncClient", return_value=client) as factory:
        adapter = AnthropicAdapter(anthropic_config)
        response = await adapter.send(_request())

    assert response.success is True
    assert response.content == "Hello"
    factory.assert_called_once_with(timeout=60.0)
    client.post.assert_awaited_once()
    assert client.post.call_args.args[0] == "https://anthropic.test/v1/messages"
    assert client.post.call_args.kwargs["headers"]["x-api-key"] == "sk-ant-test"
    client.__aexit__.assert_awaited_once()
