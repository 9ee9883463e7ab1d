"""
OpenRouter adapter (chat-completions wire style).

Also works against any OpenAI-compatible /chat/completions endpoint.
"""

from typing import Any

from aidispatch.providers.base import BaseAdapter, coerce_content, parse_usage
from aidispatch.providers.models import AIRequest, Malformed, ParseOutcome, Parsed


class OpenRouterAdapter(BaseAdapter):
    endpoint = "/chat/completions"

    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": [
                {
                    "role": "user",
                    "content": request.prompt,
                },
            ],
            "max_tokens": (
                request.max_tokens if request.max_tokens is not None else self.config.max_tokens
            ),
            "temperature": (
                request.temperature if request.temperature is not None else self.config.temperature
            ),
        }

        if request.output_schema:
            payload["response_format"] = {
                "type": "json_schema",
                "json_schema": request.output_schema,
            }

        return payload

    def build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
            **self.config.headers,
        }

    def parse_body(self, data: Any) -> ParseOutcome:
        if not isinstance(data, dict):
            return Malformed("body is not an object")

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return Malformed("missing or empty 'choices'")

        choice = choices[0]
        if not isinstance(choice, dict) or not isinstance(choice.get("message"), dict):
            return Malformed("missing 'choices[0].message'")

        content = coerce_content(choice["message"], "content")
        if isinstance(content, Malformed):
            return content

        finish_reason = choice.get("finish_reason")
        return Parsed(
            content=content,
            usage=parse_usage(
                data.get("usage"), "prompt_tokens", "completion_tokens", "total_tokens"
            ),
            finish_reason=finish_reason if isinstance(finish_reason, str) else None,
        )
