"""
Model compatibility registry for aidispatch.

Maps each model identifier to the ordered providers that can serve it.
Built once from the enabled adapters and read-only afterwards.
"""

import logging
from collections.abc import Iterable
from types import MappingProxyType

from aidispatch.providers.base import BaseAdapter
from aidispatch.providers.exceptions import ProviderConfigurationError

logger = logging.getLogger(__name__)


class ModelRegistry:
    """
    Static model -> providers mapping.

    Providers are ordered by priority; providers sharing a rank keep the
    order they were given in.
    """

    def __init__(self, adapters: Iterable[BaseAdapter]):
        """
        Build the registry.

        Args:
            adapters: Adapters for every enabled provider.

        Raises:
            ProviderConfigurationError: If two adapters share a name.
        """
        ordered = sorted(adapters, key=lambda a: a.priority)

        by_name: dict[str, BaseAdapter] = {}
        by_model: dict[str, list[str]] = {}
        for adapter in ordered:
            if adapter.name in by_name:
                raise ProviderConfigurationError(
                    f"Duplicate provider name: {adapter.name}", provider=adapter.name
                )
            by_name[adapter.name] = adapter

            for model in adapter.models:
                eligible = by_model.setdefault(model, [])
                if adapter.name not in eligible:
                    eligible.append(adapter.name)

        self._adapters = MappingProxyType(by_name)
        self._by_model = MappingProxyType({m: tuple(p) for m, p in by_model.items()})

        logger.debug(
            f"Registry built: {len(self._adapters)} providers, {len(self._by_model)} models"
        )

    def eligible(self, model: str) -> tuple[str, ...]:
        """
        Get the providers eligible to serve a model, in fallback order.

        Args:
            model: Exact model identifier.

        Returns:
            Provider names, or an empty tuple for an unknown model.
        """
        return self._by_model.get(model, ())

    def get(self, provider: str) -> BaseAdapter:
        """Get the adapter for a provider name. Raises KeyError if unknown."""
        return self._adapters[provider]

    def is_supported(self, model: str) -> bool:
        return model in self._by_model

    def providers(self) -> list[BaseAdapter]:
        """All registered adapters, in priority order."""
        return list(self._adapters.values())

    def models(self) -> list[str]:
        """All servable model identifiers, in first-registration order."""
        return list(self._by_model)

    def __len__(self) -> int:
        return len(self._adapters)
