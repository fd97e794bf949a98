"""Structured logging configuration using loguru."""

import sys
from pathlib import Path

from loguru import logger

from ..config.schemas import LoggingConfig


def setup_logging(
    level: str = "INFO",
    format: str | None = None,
    format_type: str | None = None,
    file_path: str | None = None,
    max_file_size_mb: int = 100,
    backup_count: int = 5,
    include_timestamps: bool = True,
) -> None:
    """Set up console (and optionally file) sinks for the client's log output.

    Notes:
    - Accepts both `format` and `format_type`; `format_type` takes precedence.
    - Invalid logging level names fall back to 'INFO'.
    """
    logger.remove()

    format_type_local = format_type or format or "text"

    format_parts = []
    if include_timestamps:
        format_parts.append("<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green>")
    format_parts.append("<level>{level: <8}</level>")
    format_parts.append("<cyan>{thread.name: <22}</cyan>")
    format_parts.append("<level>{message}</level>")

    if format_type_local == "json":
        log_format = "{message}"
        serialize = True
    else:
        log_format = " | ".join(format_parts)
        serialize = False

    safe_level = "INFO"
    try:
        logger.level(level)
        safe_level = level
    except ValueError:
        safe_level = "INFO"

    logger.add(
        sys.stdout,
        level=safe_level,
        format=log_format,
        serialize=serialize,
        colorize=format_type_local != "json",
    )

    if safe_level != level:
        logger.warning(f"Invalid logging level '{level}' provided; falling back to 'INFO'")

    if file_path:
        log_file_path = Path(file_path)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_file_path,
            level=safe_level,
            format=log_format,
            serialize=serialize,
            rotation=f"{max_file_size_mb} MB",
            retention=backup_count,
            encoding="utf-8",
            enqueue=True,
        )


def configure_logging_from_config(config: LoggingConfig) -> None:
    """Configure logging from a LoggingConfig section."""
    setup_logging(
        level=config.level,
        format_type=config.format,
        file_path=config.file_path,
        max_file_size_mb=config.max_file_size_mb,
        backup_count=config.backup_count,
        include_timestamps=config.include_timestamps,
    )


def loguru_log_hook(message: str) -> None:
    """Default transport log hook: HTTP traffic lines go to DEBUG."""
    logger.opt(depth=1).debug(message)
