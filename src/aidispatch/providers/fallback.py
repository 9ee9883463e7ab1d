"""
Fallback orchestrator for aidispatch provider layer.

Tries each eligible provider for a model in priority order, strictly one
after another, and returns the first success or a single aggregate failure.
"""

import logging
import time
from dataclasses import dataclass

from aidispatch.providers.exceptions import FailureType
from aidispatch.providers.models import AIRequest, AIResponse
from aidispatch.providers.registry import ModelRegistry

logger = logging.getLogger(__name__)

ALL_FAILED_PREFIX = "All AI providers failed. Last error: "


@dataclass
class FallbackAttempt:
    """Record of a failed provider attempt within one dispatch."""

    provider: str
    failure_type: FailureType | None
    message: str


class FallbackOrchestrator:
    """
    Dispatches requests through the fallback chain.

    Holds no per-request state; every dispatch() call keeps its own
    attempt list, so concurrent dispatches need no locking.
    """

    def __init__(self, registry: ModelRegistry):
        self.registry = registry

    async def dispatch(self, request: AIRequest) -> AIResponse:
        """
        Send a request to the first eligible provider that succeeds.

        Args:
            request: The generic request.

        Returns:
            The winning provider's response unchanged, or an aggregate failure.
        """
        start = time.perf_counter()
        chain = self.registry.eligible(request.model)

        if not chain:
            logger.error(
                f"[{request.correlation_id}] No AI provider available for model {request.model}"
            )
            return AIResponse.fail(
                error=f"No AI provider available for model: {request.model}",
                processing_time_ms=self._elapsed_ms(start),
                failure_type=FailureType.NO_ELIGIBLE_PROVIDER,
                model=request.model,
                correlation_id=request.correlation_id,
            )

        logger.info(
            f"[{request.correlation_id}] Dispatching {request.model} "
            f"via fallback chain: {', '.join(chain)}"
        )

        attempts: list[FallbackAttempt] = []
        for index, provider in enumerate(chain, start=1):
            adapter = self.registry.get(provider)
            response = await adapter.send(request)

            if response.success:
                logger.info(
                    f"[{request.correlation_id}] {provider} succeeded "
                    f"(attempt {index}/{len(chain)}, {response.processing_time_ms:.0f}ms)"
                )
                response.providers_tried = [a.provider for a in attempts] + [provider]
                return response

            attempts.append(FallbackAttempt(provider, response.failure_type, response.error or ""))
            logger.warning(
                f"[{request.correlation_id}] {provider} failed "
                f"(attempt {index}/{len(chain)}): {response.error}"
            )

        last = attempts[-1]
        logger.error(
            f"[{request.correlation_id}] All {len(attempts)} providers failed for {request.model}"
        )
        return AIResponse.fail(
            error=f"{ALL_FAILED_PREFIX}{last.message}",
            processing_time_ms=self._elapsed_ms(start),
            failure_type=FailureType.ALL_PROVIDERS_FAILED,
            provider=last.provider,
            model=request.model,
            correlation_id=request.correlation_id,
            providers_tried=[a.provider for a in attempts],
        )

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000
