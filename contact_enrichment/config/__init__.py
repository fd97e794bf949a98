"""Configuration for the contact enrichment client."""

from .loader import (
    build_config,
    get_config,
    load_config_files,
    load_config_from_file,
    reload_config,
)
from .schemas import ClientConfig, LoggingConfig, RateLimiterPolicy


__all__ = [
    "ClientConfig",
    "LoggingConfig",
    "RateLimiterPolicy",
    "build_config",
    "get_config",
    "load_config_files",
    "load_config_from_file",
    "reload_config",
]
