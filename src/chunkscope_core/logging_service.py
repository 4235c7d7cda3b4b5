"""
LoggingService - Centralized structured logging for Chunkscope.

Provides consistent, context-enriched logging across all modules using
structlog. Logs always go to stderr: stdout carries the report and, for
``--content-format binary``, raw chunk bytes that must stay byte-exact.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import logging
import sys
import traceback
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from structlog.types import Processor


@dataclass
class LoggingConfig:
    """
    Configuration for LoggingService.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format ("console" or "json")
        output_stream: Output destination (default: sys.stderr)
    """

    level: str = "INFO"
    format: str = "console"
    output_stream: Any = None

    def __post_init__(self) -> None:
        if self.output_stream is None:
            self.output_stream = sys.stderr


class LoggingService:
    """
    Centralized structured logging service using structlog.

    Example:
        # Setup logging once at startup
        LoggingService.configure_logging(level="INFO", format="console")

        # Get logger for a module
        logger = LoggingService.get_logger("chunkscope_core.browser")

        logger.info("chunk_listing_completed", chunk_size=65536, total_chunks=12)
    """

    # Class-level state
    _configured: bool = False
    _log_level: str = "INFO"
    _config: Optional[LoggingConfig] = None
    _loggers: dict[str, structlog.BoundLogger] = {}

    @classmethod
    def configure_logging(
        cls, level: str = "INFO", format: str = "console", config: Optional[LoggingConfig] = None
    ) -> None:
        """
        Configure global structured logging infrastructure.

        This should be called ONCE at application startup before any logging.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            format: Output format ("console" or "json")
            config: Optional LoggingConfig for advanced configuration

        Raises:
            ValueError: If level or format is invalid
            RuntimeError: If called after logging already configured
        """
        if cls._configured:
            raise RuntimeError("Logging already configured")

        if config is not None:
            cfg = config
        else:
            level_upper = level.upper()
            if level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
                raise ValueError(
                    f"Invalid log level: {level}. "
                    "Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
                )

            format_lower = format.lower()
            if format_lower not in ["json", "console"]:
                raise ValueError(f"Invalid format: {format}. Must be 'json' or 'console'")

            cfg = LoggingConfig(level=level_upper, format=format_lower)

        cls._config = cfg
        cls._log_level = cfg.level

        structlog.configure(
            processors=cls._setup_processors(),
            wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, cfg.level)),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=cfg.output_stream),
            cache_logger_on_first_use=False,
        )

        cls._configured = True

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_logger(cls, name: str) -> structlog.BoundLogger:
        """
        Get a module/component-specific logger.

        Args:
            name: Logger name (typically module path)

        Returns:
            BoundLogger instance bound with ``logger=name``

        Raises:
            RuntimeError: If logging not configured yet
            ValueError: If name is empty or too long
        """
        if not cls._configured:
            raise RuntimeError("Logging not configured. Call configure_logging() first.")

        if not name:
            raise ValueError("Logger name cannot be empty")

        if len(name) > 200:
            raise ValueError("Logger name exceeds maximum length (200)")

        if name in cls._loggers:
            return cls._loggers[name]

        logger = structlog.get_logger(name).bind(logger=name)
        cls._loggers[name] = logger

        return logger

    @classmethod
    def log_error(
        cls,
        error: Exception,
        correlation_id: str,
        context: Optional[dict[str, Any]] = None,
        logger_name: str = "chunkscope",
        include_stack_trace: bool = False,
    ) -> None:
        """
        Log an error with full context and optional stack trace.

        Extracts error type, message and error code (if ChunkscopeError).

        Args:
            error: Exception instance
            correlation_id: UUID for tracing
            context: Additional context about where/why error occurred
            logger_name: Which logger to use (default: "chunkscope")
            include_stack_trace: Whether to include full stack trace

        Raises:
            ValueError: If correlation_id is empty
        """
        if not correlation_id:
            raise ValueError("correlation_id cannot be empty")

        logger = cls.get_logger(logger_name)

        log_context: dict[str, Any] = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "correlation_id": correlation_id,
        }

        error_code = getattr(error, "error_code", None)
        if error_code:
            log_context["error_code"] = error_code

        if context:
            log_context.update(context)

        if include_stack_trace:
            log_context["stack_trace"] = traceback.format_exc()

        logger.error("error_occurred", **log_context)

    @classmethod
    def _setup_processors(cls) -> list[Processor]:
        """
        Setup structlog processors based on configuration.

        Processors (in order):
            1. add_log_level: Add log level to context
            2. TimeStamper: Add ISO timestamp
            3. StackInfoRenderer: Render stack info if requested
            4. format_exc_info: Format exception info
            5. JSONRenderer or ConsoleRenderer: Final output format
        """
        processors: list[Processor] = [
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]

        if cls._config and cls._config.format == "console":
            stream = cls._config.output_stream
            colors = bool(getattr(stream, "isatty", lambda: False)())
            processors.append(structlog.dev.ConsoleRenderer(colors=colors))
        else:
            processors.append(structlog.processors.JSONRenderer())

        return processors
