"""Shared utilities for the contact enrichment client."""

from .logging_config import configure_logging_from_config, loguru_log_hook, setup_logging


__all__ = [
    "configure_logging_from_config",
    "loguru_log_hook",
    "setup_logging",
]
