"""Configuration loader: YAML file merging + get_config that applies env overrides.

`load_config_from_file` only reads a YAML file and `load_config_files` layers
several of them. Environment overrides and validation happen in `get_config()`
so tests that inspect raw file contents can rely on an unmodified read.
"""

import os
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError, ErrorCode
from .schemas import ClientConfig

ENV_PREFIX = "CONTACT_ENRICHMENT"


def _deep_merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _convert_env_value(value: str) -> Any:
    """Convert environment variable string to appropriate type."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _apply_env_overrides(config_dict: dict[str, Any], prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Apply environment variable overrides to configuration dictionary.

    Example:
      CONTACT_ENRICHMENT__WORKER_COUNT=8 -> config_dict["worker_count"] = 8
      CONTACT_ENRICHMENT__LOGGING__LEVEL=DEBUG -> config_dict["logging"]["level"] = "DEBUG"
    """
    result = config_dict.copy()

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(f"{prefix}__"):
            continue

        config_path = env_key[len(f"{prefix}__") :].lower().split("__")

        current = result
        for path_part in config_path[:-1]:
            if path_part not in current or not isinstance(current[path_part], dict):
                current[path_part] = {}
            else:
                current[path_part] = dict(current[path_part])
            current = current[path_part]

        current[config_path[-1]] = _convert_env_value(env_value)

    return result


def load_config_from_file(config_file: Path) -> dict[str, Any]:
    """Read a YAML configuration file into a plain dictionary."""
    config_file = Path(config_file)
    if not config_file.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_file}",
            operation="load_config_from_file",
            details={"file_path": str(config_file)},
            status_code=ErrorCode.CONFIG_LOAD_FAILED,
        )

    try:
        with open(config_file, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse config: {e}",
            operation="load_config_from_file",
            details={"file_path": str(config_file)},
            status_code=ErrorCode.CONFIG_LOAD_FAILED,
            cause=e,
        ) from e

    if not isinstance(loaded, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            operation="load_config_from_file",
            details={"file_path": str(config_file), "type": type(loaded).__name__},
            status_code=ErrorCode.CONFIG_LOAD_FAILED,
        )
    return loaded


def load_config_files(config_files: Iterable[Path]) -> dict[str, Any]:
    """Read YAML files in order; each file is deep-merged over the ones before it.

    Example:
      base.yaml + production.yaml -> production values win, untouched keys
      (including nested ``logging`` keys) keep their base values
    """
    merged: dict[str, Any] = {}
    for config_file in config_files:
        merged = _deep_merge_dicts(merged, load_config_from_file(config_file))
    return merged


def build_config(
    config_dict: dict[str, Any] | None = None, apply_env_overrides_flag: bool = True
) -> ClientConfig:
    """Validate a configuration mapping, optionally layering env overrides on top."""
    merged = dict(config_dict or {})
    if apply_env_overrides_flag:
        merged = _apply_env_overrides(merged)

    try:
        return ClientConfig(**merged)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed: {e}",
            operation="build_config",
            cause=e,
        ) from e


@lru_cache(maxsize=1)
def get_config(
    config_file: Path | tuple[Path, ...] | None = None,
    apply_env_overrides_flag: bool = True,
) -> ClientConfig:
    """Get validated configuration with caching.

    Responsibility:
    - Read the optional YAML file(s), layered left to right
      (``CONTACT_ENRICHMENT_CONFIG`` if not given, ``os.pathsep``-separated)
    - Apply environment variable overrides (if requested)
    - Validate and return a ClientConfig instance
    """
    if config_file is None:
        env_files = os.getenv(f"{ENV_PREFIX}_CONFIG", "")
        config_files = [Path(p) for p in env_files.split(os.pathsep) if p]
    elif isinstance(config_file, tuple):
        config_files = list(config_file)
    else:
        config_files = [config_file]

    config_dict = load_config_files(config_files)

    return build_config(config_dict, apply_env_overrides_flag=apply_env_overrides_flag)


def reload_config() -> None:
    """Clear configuration cache to force reload on next access."""
    get_config.cache_clear()
