"""
aidispatch Provider Layer.

Dispatches text generation requests across AI providers with:
- Per-provider wire adapters (chat-completions and messages styles)
- A model compatibility registry
- Ordered fallback across eligible providers
- Cost calculation and usage tracking
"""

from aidispatch.providers.exceptions import (
    FailureType,
    ProviderConfigurationError,
    ProviderError,
    classify_exception,
    classify_status,
)
from aidispatch.providers.models import (
    AIRequest,
    AIResponse,
    DispatchOutcome,
    HealthStatus,
    Malformed,
    Parsed,
    ProviderHealth,
    ProviderStatus,
    TokenUsage,
    generate_correlation_id,
)
from aidispatch.providers.cost import CostTracker, SessionCostSummary, SessionUsage, calculate_cost
from aidispatch.providers.base import BaseAdapter
from aidispatch.providers.anthropic import AnthropicAdapter
from aidispatch.providers.openrouter import OpenRouterAdapter
from aidispatch.providers.registry import ModelRegistry
from aidispatch.providers.fallback import FallbackAttempt, FallbackOrchestrator
from aidispatch.providers.manager import ProviderManager, create_adapter

__all__ = [
    # Manager
    "ProviderManager",
    "create_adapter",
    # Models
    "AIRequest",
    "AIResponse",
    "TokenUsage",
    "Parsed",
    "Malformed",
    "DispatchOutcome",
    "HealthStatus",
    "ProviderHealth",
    "ProviderStatus",
    "generate_correlation_id",
    # Exceptions
    "ProviderError",
    "ProviderConfigurationError",
    "FailureType",
    "classify_status",
    "classify_exception",
    # Adapters
    "BaseAdapter",
    "OpenRouterAdapter",
    "AnthropicAdapter",
    # Registry and fallback
    "ModelRegistry",
    "FallbackOrchestrator",
    "FallbackAttempt",
    # Cost
    "CostTracker",
    "SessionUsage",
    "SessionCostSummary",
    "calculate_cost",
]
