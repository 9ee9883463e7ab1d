"""
Cost tracking for aidispatch provider layer.

Prices token usage against a provider's price table and aggregates
usage for callers that want a running session summary.
"""

import logging
from dataclasses import dataclass

from aidispatch.config.schema import ProviderConfig
from aidispatch.providers.models import AIResponse, TokenUsage

logger = logging.getLogger(__name__)


def calculate_cost(
    provider: ProviderConfig,
    model: str,
    usage: TokenUsage | None,
) -> float | None:
    """
    Calculate the cost of a completion.

    Split counts are priced at their own rates using whichever of them
    exist. A total-only report is priced at the input rate.

    Args:
        provider: The provider that served the request.
        model: The model identifier as requested.
        usage: Token usage from the response, if any.

    Returns:
        Cost in USD, or None if there is no usage or no price for the model.
    """
    if usage is None or usage.tokens_used is None:
        return None

    price = provider.pricing.get(model)
    if price is None:
        return None

    if usage.has_split:
        cost = 0.0
        if usage.input_tokens is not None:
            cost += (usage.input_tokens / 1000) * price.input_per_1k
        if usage.output_tokens is not None:
            cost += (usage.output_tokens / 1000) * price.output_per_1k
        return cost

    return (usage.total_tokens / 1000) * price.input_per_1k


@dataclass
class SessionUsage:
    """Aggregated usage for one provider/model pair."""

    provider: str
    model: str
    tokens_used: int = 0
    total_cost: float = 0.0
    request_count: int = 0

    def add(self, tokens: int | None, cost: float | None) -> None:
        """Add usage from a completion."""
        self.tokens_used += tokens or 0
        self.total_cost += cost or 0.0
        self.request_count += 1


@dataclass
class SessionCostSummary:
    """Cost summary for a session."""

    by_model: dict[tuple[str, str], SessionUsage]
    total_tokens: int
    total_cost: float
    total_requests: int


class CostTracker:
    """
    Records usage of successful responses.

    This is the "record usage" collaborator the provider manager forwards
    to; it never influences dispatch.
    """

    def __init__(self) -> None:
        self.session_usage: dict[tuple[str, str], SessionUsage] = {}

    def record_usage(self, response: AIResponse) -> None:
        """
        Record usage from a successful response.

        Args:
            response: The response returned to the caller.
        """
        if not response.success:
            return

        provider = response.provider or "unknown"
        model = response.model or "unknown"
        key = (provider, model)
        if key not in self.session_usage:
            self.session_usage[key] = SessionUsage(provider=provider, model=model)

        self.session_usage[key].add(response.tokens_used, response.cost)

        cost_text = f"${response.cost:.6f}" if response.cost is not None else "unpriced"
        logger.debug(
            f"Recorded usage for {provider}/{model}: "
            f"{response.tokens_used} tokens, {cost_text}"
        )

    def get_session_summary(self) -> SessionCostSummary:
        """Get cost summary for the current session."""
        return SessionCostSummary(
            by_model=dict(self.session_usage),
            total_tokens=self.total_tokens,
            total_cost=self.total_cost,
            total_requests=self.total_requests,
        )

    @property
    def total_cost(self) -> float:
        """Total cost for the session."""
        return sum(u.total_cost for u in self.session_usage.values())

    @property
    def total_tokens(self) -> int:
        """Total tokens for the session."""
        return sum(u.tokens_used for u in self.session_usage.values())

    @property
    def total_requests(self) -> int:
        """Total number of recorded requests."""
        return sum(u.request_count for u in self.session_usage.values())

    def reset(self) -> None:
        """Reset session tracking."""
        self.session_usage.clear()
