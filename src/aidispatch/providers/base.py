"""
Base provider adapter for aidispatch.

An adapter translates the generic AIRequest into one provider's wire
format, performs the HTTP call, and normalizes whatever comes back into
an AIResponse. send() never raises: every path ends in a response.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from aidispatch.config.schema import ProviderConfig
from aidispatch.providers.cost import calculate_cost
from aidispatch.providers.exceptions import (
    FailureType,
    classify_exception,
    classify_status,
    exception_message,
    format_http_error,
    invalid_format_message,
)
from aidispatch.providers.models import (
    AIRequest,
    AIResponse,
    Malformed,
    ParseOutcome,
    Parsed,
    TokenUsage,
)

logger = logging.getLogger(__name__)


def token_count(value: Any) -> int | None:
    """Read one token count from a usage block. Anything not a non-negative integer is absent."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 0:
        return value
    return None


def coerce_content(container: dict[str, Any], key: str) -> str | Malformed:
    """
    Extract a text field from a provider result.

    A present-but-null value becomes the literal string "null"; a missing
    key, an empty string, or a non-string value is malformed.
    """
    if key not in container:
        return Malformed(f"missing '{key}' field")

    value = container[key]
    if value is None:
        return "null"
    if not isinstance(value, str):
        return Malformed(f"'{key}' is {type(value).__name__}, expected string")
    if not value:
        return Malformed(f"'{key}' is empty")
    return value


class BaseAdapter(ABC):
    """Base class with the shared request/response lifecycle."""

    #: Path appended to the provider's base URL.
    endpoint: str = ""

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the adapter.

        Args:
            config: Resolved provider configuration.
            client: Shared HTTP client. A short-lived client is opened per call if not provided.
        """
        self.config = config
        self._client = client

    @property
    def id(self) -> str:
        """Provider identifier (config key)."""
        return self.config.id

    @property
    def name(self) -> str:
        """Display name used in error messages."""
        return self.config.name

    @property
    def priority(self) -> int:
        return self.config.priority

    @property
    def models(self) -> tuple[str, ...]:
        return self.config.models

    @property
    def url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}{self.endpoint}"

    def supports_model(self, model: str) -> bool:
        """Check whether this provider lists the model identifier exactly."""
        return model in self.config.models

    @abstractmethod
    def build_payload(self, request: AIRequest) -> dict[str, Any]:
        """Translate a generic request into the provider's JSON body."""

    @abstractmethod
    def build_headers(self) -> dict[str, str]:
        """Headers for the provider, including authorization."""

    @abstractmethod
    def parse_body(self, data: Any) -> ParseOutcome:
        """Turn a decoded 2xx JSON body into Parsed or Malformed. Must not raise."""

    async def send(self, request: AIRequest) -> AIResponse:
        """
        Send a request to the provider.

        Args:
            request: The generic request.

        Returns:
            A successful or failed AIResponse. Exceptions are converted,
            except cancellation, which propagates to the caller.
        """
        start = time.perf_counter()
        payload = self.build_payload(request)
        logger.debug(f"[{request.correlation_id}] POST {self.url} model={payload.get('model')}")

        try:
            response = await self._post(payload)
        except Exception as e:
            message = exception_message(e)
            failure_type = classify_exception(e)
            logger.warning(
                f"[{request.correlation_id}] {self.name} request failed "
                f"({failure_type.value}): {message}"
            )
            return self._failure(request, message, failure_type, start)

        if not response.is_success:
            message = format_http_error(
                self.name, response.status_code, response.reason_phrase, response.text
            )
            failure_type = classify_status(response.status_code)
            logger.warning(
                f"[{request.correlation_id}] {self.name} returned "
                f"{response.status_code} ({failure_type.value})"
            )
            return self._failure(request, message, failure_type, start)

        outcome = self._decode(response)
        if isinstance(outcome, Malformed):
            logger.warning(
                f"[{request.correlation_id}] {self.name} response malformed: {outcome.reason}"
            )
            return self._failure(
                request,
                invalid_format_message(self.name),
                FailureType.MALFORMED_RESPONSE,
                start,
            )

        return self._success(request, outcome, start)

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        """Issue the POST with this provider's timeout."""
        headers = self.build_headers()
        timeout = self.config.timeout_seconds

        if self._client is not None:
            return await self._client.post(self.url, json=payload, headers=headers, timeout=timeout)

        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(self.url, json=payload, headers=headers)

    def _decode(self, response: httpx.Response) -> ParseOutcome:
        try:
            data = response.json()
        except ValueError as e:
            return Malformed(f"body is not JSON: {e}")

        try:
            return self.parse_body(data)
        except Exception as e:
            logger.exception(f"Unexpected error parsing {self.name} response")
            return Malformed(f"parser error: {e}")

    def _elapsed_ms(self, start: float) -> float:
        return (time.perf_counter() - start) * 1000

    def _success(self, request: AIRequest, outcome: Parsed, start: float) -> AIResponse:
        usage = outcome.usage
        tokens_used = usage.tokens_used if usage is not None else None
        cost = calculate_cost(self.config, request.model, usage)

        return AIResponse.ok(
            content=outcome.content,
            processing_time_ms=self._elapsed_ms(start),
            tokens_used=tokens_used,
            cost=cost,
            provider=self.name,
            model=request.model,
            correlation_id=request.correlation_id,
            finish_reason=outcome.finish_reason,
            usage=usage,
            providers_tried=[self.name],
        )

    def _failure(
        self,
        request: AIRequest,
        message: str,
        failure_type: FailureType,
        start: float,
    ) -> AIResponse:
        return AIResponse.fail(
            error=message,
            processing_time_ms=self._elapsed_ms(start),
            failure_type=failure_type,
            provider=self.name,
            model=request.model,
            correlation_id=request.correlation_id,
            providers_tried=[self.name],
        )


def parse_usage(raw: Any, input_key: str, output_key: str, total_key: str | None = None) -> TokenUsage | None:
    """
    Build TokenUsage from a provider usage block.

    Returns None when the block is absent or carries no usable count.
    """
    if not isinstance(raw, dict):
        return None

    usage = TokenUsage(
        input_tokens=token_count(raw.get(input_key)),
        output_tokens=token_count(raw.get(output_key)),
        total_tokens=token_count(raw.get(total_key)) if total_key else None,
    )
    if usage.tokens_used is None:
        return None
    return usage
