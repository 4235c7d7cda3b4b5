"""
Chunkscope Core Layer.

Contains:
- Exception hierarchy
- Configuration management
- Logging service
- Size lexicon and hex codec
- Reconciliation engine, chunk browser and content inspector

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

from .config import ChunkscopeSettings, get_config_summary, settings
from .exceptions import (
    AccountingMismatchError,
    ChunkscopeError,
    InvalidArgumentError,
    SerializationError,
    StorageIOError,
)
from .logging_service import LoggingConfig, LoggingService


def __getattr__(name):
    """Lazy import for components to avoid circular imports with chunkscope_db."""
    if name == "ReconciliationEngine":
        from .reconciliation import ReconciliationEngine

        return ReconciliationEngine
    elif name == "ChunkBrowser":
        from .browser import ChunkBrowser

        return ChunkBrowser
    elif name == "ChunkContentReader":
        from .inspector import ChunkContentReader

        return ChunkContentReader
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Exceptions
    "ChunkscopeError",
    "InvalidArgumentError",
    "SerializationError",
    "StorageIOError",
    "AccountingMismatchError",
    # Configuration
    "ChunkscopeSettings",
    "settings",
    "get_config_summary",
    # Logging
    "LoggingService",
    "LoggingConfig",
    # Components
    "ReconciliationEngine",
    "ChunkBrowser",
    "ChunkContentReader",
]
