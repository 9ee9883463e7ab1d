"""
Provider data models for aidispatch.

Defines the generic request/response types shared by every adapter,
plus the tagged parse outcome adapters produce from a provider body.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from aidispatch.providers.exceptions import FailureType


def generate_correlation_id() -> str:
    """Generate a correlation ID for request tracking."""
    return f"ai-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


@dataclass
class AIRequest:
    """Generic text generation request."""

    prompt: str
    model: str
    max_tokens: int | None = None
    temperature: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)  # Opaque to this package
    correlation_id: str = field(default_factory=generate_correlation_id)
    output_schema: dict[str, Any] | None = None  # Structured output JSON schema


@dataclass(frozen=True)
class TokenUsage:
    """Token usage as reported by a provider. Any count may be missing."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None

    @property
    def tokens_used(self) -> int | None:
        """Reported total, else the sum of whichever sub-counts exist."""
        if self.total_tokens is not None:
            return self.total_tokens
        present = [n for n in (self.input_tokens, self.output_tokens) if n is not None]
        if not present:
            return None
        return sum(present)

    @property
    def has_split(self) -> bool:
        """True if at least one of the input/output sub-counts is known."""
        return self.input_tokens is not None or self.output_tokens is not None


@dataclass
class AIResponse:
    """
    Normalized result of a dispatch, from a single adapter or the orchestrator.

    success=True requires non-empty content and no error; success=False
    requires empty content and a non-empty error. A cost is only meaningful
    alongside a token count.
    """

    success: bool
    processing_time_ms: float
    content: str = ""
    error: str | None = None
    tokens_used: int | None = None
    cost: float | None = None
    provider: str | None = None
    model: str | None = None
    correlation_id: str | None = None
    failure_type: FailureType | None = None
    finish_reason: str | None = None
    usage: TokenUsage | None = None
    providers_tried: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.success:
            if not isinstance(self.content, str) or not self.content:
                raise ValueError("Successful response requires non-empty content")
            if self.error is not None:
                raise ValueError("Successful response cannot carry an error")
        else:
            if self.content:
                raise ValueError("Failed response must have empty content")
            if not self.error:
                raise ValueError("Failed response requires an error message")
        if self.cost is not None and self.tokens_used is None:
            raise ValueError("Cost requires a token count")
        if self.processing_time_ms < 0:
            raise ValueError("Processing time cannot be negative")

    @classmethod
    def ok(
        cls,
        content: str,
        processing_time_ms: float,
        **kwargs: Any,
    ) -> "AIResponse":
        """Create a successful response."""
        return cls(success=True, content=content, processing_time_ms=processing_time_ms, **kwargs)

    @classmethod
    def fail(
        cls,
        error: str,
        processing_time_ms: float,
        failure_type: FailureType,
        **kwargs: Any,
    ) -> "AIResponse":
        """Create a failed response."""
        return cls(
            success=False,
            error=error,
            processing_time_ms=processing_time_ms,
            failure_type=failure_type,
            **kwargs,
        )

    def model_dump(self) -> dict[str, Any]:
        """Convert to a plain dict (for JSON output and usage forwarding)."""
        return {
            "success": self.success,
            "content": self.content,
            "error": self.error,
            "tokens_used": self.tokens_used,
            "cost": self.cost,
            "processing_time_ms": self.processing_time_ms,
            "provider": self.provider,
            "model": self.model,
            "correlation_id": self.correlation_id,
            "failure_type": self.failure_type.value if self.failure_type else None,
            "finish_reason": self.finish_reason,
            "providers_tried": list(self.providers_tried),
        }


# =============================================================================
# Parse outcomes
# =============================================================================


@dataclass(frozen=True)
class Parsed:
    """A provider body that yielded usable content."""

    content: str
    usage: TokenUsage | None = None
    finish_reason: str | None = None


@dataclass(frozen=True)
class Malformed:
    """A provider body that did not match the expected shape."""

    reason: str


ParseOutcome = Parsed | Malformed


# =============================================================================
# Monitoring
# =============================================================================


class DispatchOutcome(str, Enum):
    """Terminal state of one orchestration pass."""

    SUCCEEDED = "succeeded"
    NO_ELIGIBLE_PROVIDER = "no_eligible_provider"
    ALL_PROVIDERS_FAILED = "all_providers_failed"

    @classmethod
    def of(cls, response: AIResponse) -> "DispatchOutcome":
        """Derive the outcome of an orchestrator response."""
        if response.success:
            return cls.SUCCEEDED
        if response.failure_type == FailureType.NO_ELIGIBLE_PROVIDER:
            return cls.NO_ELIGIBLE_PROVIDER
        return cls.ALL_PROVIDERS_FAILED


class HealthStatus(str, Enum):
    """Provider health status."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    NO_PROVIDERS = "no_providers"


@dataclass
class ProviderStatus:
    """Configuration view of one enabled provider."""

    name: str
    priority: int
    models: list[str]
    base_url: str
    timeout_seconds: float


@dataclass
class ProviderHealth:
    """Result of a connectivity test."""

    model: str
    status: HealthStatus
    checked_at: datetime
    provider: str | None = None
    response_preview: str | None = None
    error: str | None = None
    processing_time_ms: float | None = None
    tokens_used: int | None = None
    cost: float | None = None
