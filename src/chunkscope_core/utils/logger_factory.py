"""
Logger Factory - Convenience wrapper for LoggingService.

Provides a simple get_logger() function so modules do not import the
service class directly.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

from typing import Optional

import structlog

from chunkscope_core.config import settings
from chunkscope_core.logging_service import LoggingService


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a module/component-specific logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        BoundLogger writing structured events to stderr

    Raises:
        RuntimeError: If logging not configured yet (call configure_logging() first)
        ValueError: If name is empty or exceeds maximum length (200 chars)

    Example:
        ```python
        from chunkscope_core.utils import get_logger

        logger = get_logger(__name__)
        logger.info("summary_started", size_classes=11)
        ```
    """
    return LoggingService.get_logger(name)


def configure_logging(level: Optional[str] = None, format: Optional[str] = None) -> None:
    """
    Configure structured logging infrastructure.

    Falls back to settings.log_level / settings.log_format for any argument
    left as None. Call ONCE at application startup.

    Raises:
        ValueError: If level or format is invalid
        RuntimeError: If called after logging already configured
    """
    if level is None:
        level = settings.log_level
    if format is None:
        format = settings.log_format

    LoggingService.configure_logging(level=level, format=format)
