"""
Anthropic Claude adapter (messages wire style).
"""

from typing import Any

from aidispatch.providers.base import BaseAdapter, coerce_content, parse_usage
from aidispatch.providers.models import AIRequest, Malformed, ParseOutcome, Parsed

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(BaseAdapter):
    endpoint = "/messages"

    def resolve_model(self, model: str) -> str:
        """Map a generic model identifier to Anthropic's dated model ID."""
        return self.config.model_map.get(model, model)

    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.resolve_model(request.model),
            "max_tokens": (
                request.max_tokens if request.max_tokens is not None else self.config.max_tokens
            ),
            "messages": [
                {
                    "role": "user",
                    "content": request.prompt,
                },
            ],
        }

        # Only sent when the caller asks; the API default applies otherwise
        if request.temperature is not None:
            payload["temperature"] = request.temperature

        return payload

    def build_headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
            **self.config.headers,
        }

    def parse_body(self, data: Any) -> ParseOutcome:
        if not isinstance(data, dict):
            return Malformed("body is not an object")

        blocks = data.get("content")
        if not isinstance(blocks, list) or not blocks:
            return Malformed("missing or empty 'content'")

        block = blocks[0]
        if not isinstance(block, dict):
            return Malformed("'content[0]' is not an object")

        text = coerce_content(block, "text")
        if isinstance(text, Malformed):
            return text

        stop_reason = data.get("stop_reason")
        return Parsed(
            content=text,
            usage=parse_usage(data.get("usage"), "input_tokens", "output_tokens"),
            finish_reason=stop_reason if isinstance(stop_reason, str) else None,
        )
