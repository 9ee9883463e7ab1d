"""
Pydantic configuration schema for aidispatch.

Declarative provider settings live in DispatchConfig; ProviderConfig is the
frozen, key-bearing form each adapter is built from at startup.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

WireStyle = Literal["chat_completions", "messages"]


# =============================================================================
# Pricing
# =============================================================================


class ModelPrice(BaseModel):
    """USD price per 1K tokens."""

    model_config = ConfigDict(frozen=True)

    input_per_1k: float = Field(ge=0.0)
    output_per_1k: float = Field(ge=0.0)


def _flat(rate: float) -> ModelPrice:
    return ModelPrice(input_per_1k=rate, output_per_1k=rate)


# =============================================================================
# Provider Configuration
# =============================================================================


class ProviderSettings(BaseModel):
    """
    Declarative settings for one provider.

    The display name appears in error messages and fallback results, and must be
    unique among enabled providers.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    style: WireStyle
    api_key_env: str
    base_url: str
    models: list[str] = Field(default_factory=list)
    pricing: dict[str, ModelPrice] = Field(default_factory=dict)
    priority: int = 100  # Lower number = tried first
    timeout_seconds: float = Field(default=30.0, gt=0.0)
    model_map: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    max_tokens: int = Field(default=1000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    enabled: bool = True

    def resolve(self, provider_id: str, api_key: str) -> "ProviderConfig":
        """Bind an API key to these settings."""
        return ProviderConfig(
            id=provider_id,
            api_key=api_key,
            **self.model_dump(exclude={"api_key_env", "enabled"}),
        )


class ProviderConfig(BaseModel):
    """
    Resolved provider configuration.

    Built once at process start and never modified afterwards.
    """

    model_config = ConfigDict(frozen=True, validate_default=True)

    id: str
    name: str
    style: WireStyle
    api_key: str = Field(repr=False)
    base_url: str
    models: tuple[str, ...] = ()
    pricing: Mapping[str, ModelPrice] = Field(default_factory=dict)
    priority: int = 100
    timeout_seconds: float = 30.0
    model_map: Mapping[str, str] = Field(default_factory=dict)
    headers: Mapping[str, str] = Field(default_factory=dict)
    max_tokens: int = 1000
    temperature: float = 0.7

    @field_validator("pricing", "model_map", "headers", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))

    @field_serializer("pricing", "model_map", "headers")
    def _plain(self, value: Mapping[str, Any]) -> dict[str, Any]:
        return dict(value)


def _default_openrouter() -> ProviderSettings:
    return ProviderSettings(
        name="OpenRouter",
        style="chat_completions",
        api_key_env="OPENROUTER_API_KEY",
        base_url="https://openrouter.ai/api/v1",
        models=[
            # OpenAI models
            "openai/gpt-5-nano",
            "openai/gpt-5-mini",
            "openai/gpt-5-chat",
            "openai/gpt-5",
            "openai/gpt-4.1-nano",
            "openai/gpt-4",
            "openai/gpt-4o-mini",
            "openai/gpt-4o",
            # Anthropic models
            "anthropic/claude-3-haiku",
            "anthropic/claude-3.5-haiku",
            "anthropic/claude-3.5-sonnet",
            "anthropic/claude-sonnet-4",
            "anthropic/claude-sonnet-4.5",
            "anthropic/claude-haiku-4.5",
        ],
        pricing={
            "openai/gpt-5-nano": _flat(0.00005),
            "openai/gpt-5-mini": _flat(0.00025),
            "openai/gpt-5-chat": _flat(0.00125),
            "openai/gpt-5": _flat(0.00125),
            "openai/gpt-4.1-nano": _flat(0.002),
            "openai/gpt-4": _flat(0.03),
            "openai/gpt-4o-mini": _flat(0.00015),
            "openai/gpt-4o": _flat(0.005),
            "anthropic/claude-3-haiku": _flat(0.00025),
        },
        priority=1,
        timeout_seconds=30.0,
    )


def _default_anthropic() -> ProviderSettings:
    return ProviderSettings(
        name="Anthropic",
        style="messages",
        api_key_env="ANTHROPIC_API_KEY",
        base_url="https://api.anthropic.com/v1",
        models=[
            "claude-3-sonnet",
            "claude-3-haiku",
            "claude-3-opus",
            "anthropic/claude-3-haiku",
        ],
        pricing={
            "claude-3-sonnet": ModelPrice(input_per_1k=0.003, output_per_1k=0.015),
            "claude-3-haiku": ModelPrice(input_per_1k=0.00025, output_per_1k=0.00125),
            "claude-3-opus": ModelPrice(input_per_1k=0.015, output_per_1k=0.075),
            "anthropic/claude-3-haiku": ModelPrice(input_per_1k=0.00025, output_per_1k=0.00125),
        },
        priority=2,
        timeout_seconds=60.0,
        model_map={
            "claude-3-sonnet": "claude-3-sonnet-20240229",
            "claude-3-haiku": "claude-3-haiku-20240307",
            "claude-3-opus": "claude-3-opus-20240229",
            "anthropic/claude-3-haiku": "claude-3-haiku-20240307",
        },
    )


def _default_providers() -> dict[str, ProviderSettings]:
    return {
        "openrouter": _default_openrouter(),
        "anthropic": _default_anthropic(),
    }


# =============================================================================
# Root Configuration
# =============================================================================


class DispatchConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    default_model: str = "openai/gpt-5-nano"
    providers: dict[str, ProviderSettings] = Field(default_factory=_default_providers)

    @model_validator(mode="after")
    def _unique_provider_names(self) -> "DispatchConfig":
        seen: dict[str, str] = {}
        for provider_id, settings in self.providers.items():
            if not settings.enabled:
                continue
            if settings.name in seen:
                raise ValueError(
                    f"Providers '{seen[settings.name]}' and '{provider_id}' "
                    f"share the name '{settings.name}'"
                )
            seen[settings.name] = provider_id
        return self
