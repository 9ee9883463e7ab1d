"""
Configuration loader for aidispatch.

Loads and merges configuration from multiple sources:
1. Default values
2. Config file (--config, AIDISPATCH_CONFIG, or ~/.aidispatch/config.yaml)
3. Environment variables (AIDISPATCH_*)

Provider API keys are read separately, once, by resolve_providers().
"""

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from aidispatch.config.merger import deep_merge, set_nested_value
from aidispatch.config.schema import DispatchConfig, ProviderConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "AIDISPATCH_"
ENV_NESTING = "__"
_RESERVED_ENV = {"AIDISPATCH_HOME", "AIDISPATCH_CONFIG"}


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def get_aidispatch_home(environ: Mapping[str, str] | None = None) -> Path:
    """
    Get the aidispatch home directory.

    Resolution order:
    1. AIDISPATCH_HOME environment variable
    2. Default: ~/.aidispatch
    """
    env = os.environ if environ is None else environ
    env_home = env.get("AIDISPATCH_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".aidispatch"


def get_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Get the path of the config file to load when none is given explicitly."""
    env = os.environ if environ is None else environ
    explicit = env.get("AIDISPATCH_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    return get_aidispatch_home(env) / "config.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration dictionary, empty if the file does not exist.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return content


def apply_env_overrides(
    config: dict[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern:
    AIDISPATCH_<KEY>=<value>
    AIDISPATCH_<SECTION>__<NESTED>__<KEY>=<value>

    Args:
        config: Configuration dictionary to modify.
        environ: Environment to read. Defaults to os.environ.

    Returns:
        Configuration with environment overrides applied.
    """
    env = os.environ if environ is None else environ

    for key, value in env.items():
        if not key.startswith(ENV_PREFIX) or key in _RESERVED_ENV:
            continue

        # AIDISPATCH_PROVIDERS__ANTHROPIC__TIMEOUT_SECONDS -> providers.anthropic.timeout_seconds
        key_path = [part.lower() for part in key[len(ENV_PREFIX) :].split(ENV_NESTING) if part]
        if not key_path:
            continue

        config = set_nested_value(config, key_path, _parse_env_value(value))

    return config


_BOOLEANS = {"true": True, "yes": True, "on": True, "false": False, "no": False, "off": False}
_INT = re.compile(r"-?\d+")
_FLOAT = re.compile(r"-?\d+\.\d+")


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable value to bool, int, float, list, or string."""
    lowered = value.lower()
    if lowered in _BOOLEANS:
        return _BOOLEANS[lowered]
    if _INT.fullmatch(value):
        return int(value)
    if _FLOAT.fullmatch(value):
        return float(value)
    if "," in value:
        return [item.strip() for item in value.split(",")]
    return value


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    skip_env: bool = False,
) -> DispatchConfig:
    """
    Load and merge configuration from all sources.

    Args:
        path: Explicit config file. Must exist when given.
        environ: Environment to read. Defaults to os.environ.
        skip_env: Skip environment variable overrides.

    Returns:
        Merged and validated DispatchConfig.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    env = os.environ if environ is None else environ

    config_dict = DispatchConfig().model_dump()

    if path is not None:
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        config_path = path
    else:
        config_path = get_config_path(env)

    file_config = load_yaml_file(config_path)
    if file_config:
        logger.debug(f"Loaded config from {config_path}")
        config_dict = deep_merge(config_dict, file_config)

    if not skip_env:
        config_dict = apply_env_overrides(config_dict, env)

    try:
        return DispatchConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e


def resolve_providers(
    config: DispatchConfig,
    environ: Mapping[str, str] | None = None,
) -> list[ProviderConfig]:
    """
    Read API keys and build the frozen provider configurations.

    A provider that is disabled or has no key configured is left out; it
    stays unavailable for the lifetime of the process.

    Args:
        config: Loaded configuration.
        environ: Environment to read keys from. Defaults to os.environ.

    Returns:
        Provider configurations, sorted by priority (ties keep config order).
    """
    env = os.environ if environ is None else environ
    resolved: list[ProviderConfig] = []

    for provider_id, settings in config.providers.items():
        if not settings.enabled:
            logger.info(f"Provider {settings.name} is disabled in configuration")
            continue

        api_key = env.get(settings.api_key_env, "").strip()
        if not api_key:
            logger.info(f"Provider {settings.name} disabled: {settings.api_key_env} is not set")
            continue

        resolved.append(settings.resolve(provider_id, api_key))

    resolved.sort(key=lambda p: p.priority)
    return resolved
