"""
aidispatch configuration.

Pydantic schema, YAML/environment loading, and provider key resolution.
"""

from aidispatch.config.loader import (
    ConfigurationError,
    apply_env_overrides,
    get_aidispatch_home,
    get_config_path,
    load_config,
    load_yaml_file,
    resolve_providers,
)
from aidispatch.config.merger import deep_merge, set_nested_value
from aidispatch.config.schema import (
    DispatchConfig,
    ModelPrice,
    ProviderConfig,
    ProviderSettings,
)

__all__ = [
    # Schema
    "DispatchConfig",
    "ModelPrice",
    "ProviderConfig",
    "ProviderSettings",
    # Loader
    "ConfigurationError",
    "apply_env_overrides",
    "get_aidispatch_home",
    "get_config_path",
    "load_config",
    "load_yaml_file",
    "resolve_providers",
    # Merger
    "deep_merge",
    "set_nested_value",
]
