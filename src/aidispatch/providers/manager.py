"""
Provider manager for aidispatch.

Startup wiring for the provider layer: reads API keys once, builds the
adapters, registry and orchestrator, and exposes send/status/health
operations. Constructed explicitly by the application; there is no
module-level instance.
"""

import logging
import os
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import httpx

from aidispatch.config.loader import resolve_providers
from aidispatch.config.schema import DispatchConfig, ProviderConfig
from aidispatch.providers.anthropic import AnthropicAdapter
from aidispatch.providers.base import BaseAdapter
from aidispatch.providers.cost import CostTracker
from aidispatch.providers.exceptions import ProviderConfigurationError
from aidispatch.providers.fallback import FallbackOrchestrator
from aidispatch.providers.models import (
    AIRequest,
    AIResponse,
    HealthStatus,
    ProviderHealth,
    ProviderStatus,
)
from aidispatch.providers.openrouter import OpenRouterAdapter
from aidispatch.providers.registry import ModelRegistry

logger = logging.getLogger(__name__)

ADAPTER_STYLES: dict[str, type[BaseAdapter]] = {
    "chat_completions": OpenRouterAdapter,
    "messages": AnthropicAdapter,
}

HEALTH_CHECK_PROMPT = 'Test message - respond with "OK"'


def create_adapter(config: ProviderConfig, client: httpx.AsyncClient | None = None) -> BaseAdapter:
    """
    Create the adapter for a provider's wire style.

    Raises:
        ProviderConfigurationError: If the style is unknown.
    """
    adapter_class = ADAPTER_STYLES.get(config.style)
    if adapter_class is None:
        raise ProviderConfigurationError(
            f"Unknown wire style '{config.style}' for provider {config.name}",
            provider=config.name,
        )
    return adapter_class(config, client=client)


class ProviderManager:
    """
    Owns the provider layer for the lifetime of the process.

    Provider availability is decided here, once: a provider without an API
    key is never registered and so never eligible for any request.
    """

    def __init__(
        self,
        config: DispatchConfig,
        environ: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        cost_tracker: CostTracker | None = None,
    ):
        """
        Initialize the provider manager.

        Args:
            config: Loaded configuration.
            environ: Environment to read API keys from. Defaults to os.environ.
            client: Shared HTTP client for all adapters. Adapters open one per call if not provided.
            cost_tracker: Usage recorder. Creates new if not provided.
        """
        self.config = config
        self.cost_tracker = cost_tracker or CostTracker()
        self._client = client

        provider_configs = resolve_providers(config, os.environ if environ is None else environ)
        self.registry = ModelRegistry(create_adapter(p, client=client) for p in provider_configs)
        self.orchestrator = FallbackOrchestrator(self.registry)

        if len(self.registry) == 0:
            logger.error(
                "No AI providers configured. Set one of: "
                + ", ".join(s.api_key_env for s in config.providers.values())
            )
        else:
            logger.info(
                "Enabled providers: " + ", ".join(a.name for a in self.registry.providers())
            )

    async def send(self, request: AIRequest) -> AIResponse:
        """
        Dispatch a request through the fallback chain.

        Successful usage is forwarded to the cost tracker.
        """
        response = await self.orchestrator.dispatch(request)
        if response.success:
            self.cost_tracker.record_usage(response)
        return response

    async def generate(
        self,
        prompt: str,
        model: str | None = None,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        metadata: dict[str, Any] | None = None,
        output_schema: dict[str, Any] | None = None,
    ) -> AIResponse:
        """
        Convenience wrapper around send().

        Args:
            prompt: Prompt text.
            model: Model identifier, or None for the configured default.
            max_tokens: Maximum output tokens.
            temperature: Sampling temperature.
            metadata: Opaque caller metadata.
            output_schema: JSON schema for structured output.

        Returns:
            The dispatch result.
        """
        request = AIRequest(
            prompt=prompt,
            model=model or self.config.default_model,
            max_tokens=max_tokens,
            temperature=temperature,
            metadata=metadata or {},
            output_schema=output_schema,
        )
        return await self.send(request)

    def get_provider_status(self) -> list[ProviderStatus]:
        """Get enabled providers and their configuration, in priority order."""
        return [
            ProviderStatus(
                name=adapter.name,
                priority=adapter.priority,
                models=list(adapter.models),
                base_url=adapter.config.base_url,
                timeout_seconds=adapter.config.timeout_seconds,
            )
            for adapter in self.registry.providers()
        ]

    def get_available_models(self) -> list[str]:
        """Get every model identifier at least one enabled provider can serve."""
        return self.registry.models()

    async def health_check(self, model: str | None = None) -> ProviderHealth:
        """
        Test provider connectivity with a tiny request.

        Args:
            model: Model to test, or None for the configured default.

        Returns:
            Health result for the model's fallback chain.
        """
        test_model = model or self.config.default_model

        if len(self.registry) == 0:
            return ProviderHealth(
                model=test_model,
                status=HealthStatus.NO_PROVIDERS,
                checked_at=datetime.now(),
                error="No AI providers configured",
            )

        response = await self.orchestrator.dispatch(
            AIRequest(
                prompt=HEALTH_CHECK_PROMPT,
                model=test_model,
                temperature=0.1,
                max_tokens=10,
                metadata={"test": True},
            )
        )

        return ProviderHealth(
            model=test_model,
            status=HealthStatus.HEALTHY if response.success else HealthStatus.UNHEALTHY,
            checked_at=datetime.now(),
            provider=response.provider,
            response_preview=response.content[:100] if response.success else None,
            error=response.error,
            processing_time_ms=response.processing_time_ms,
            tokens_used=response.tokens_used,
            cost=response.cost,
        )

    async def aclose(self) -> None:
        """Close the shared HTTP client, if any."""
        if self._client is not None:
            await self._client.aclose()

    async def __aenter__(self) -> "ProviderManager":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
