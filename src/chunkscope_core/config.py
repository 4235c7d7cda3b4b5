"""
Configuration Management for Chunkscope.

Provides type-safe configuration loading using Pydantic Settings.
Supports CHUNKSCOPE_* environment variables, a .env file, and defaults that
work without any configuration. Command-line flags override these values.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

from typing import Any, Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkscopeSettings(BaseSettings):
    """
    Centralized configuration for the chunkscope tool.

    Configuration is loaded with the following priority (highest to lowest):
    1. System environment variables (CHUNKSCOPE_ prefix)
    2. .env file in the working directory
    3. Hardcoded default values

    Example:
        ```python
        from chunkscope_core.config import settings

        print(settings.backend)  # 'snapshot'
        print(settings.preview_bytes)  # 256
        ```
    """

    # ========================================
    # LOGGING CONFIGURATION
    # ========================================

    log_level: str = Field(
        default="WARNING", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_format: str = Field(default="console", description="Log format (console, json)")

    # ========================================
    # STORAGE CONFIGURATION
    # ========================================

    backend: str = Field(
        default="snapshot",
        description="Storage backend: 'snapshot' or a 'package.module:factory' import path",
    )

    # ========================================
    # DISPLAY CONFIGURATION
    # ========================================

    default_page_size: int = Field(
        default=20, ge=1, le=10_000, description="Chunks per page in the bucket listing"
    )

    preview_bytes: int = Field(
        default=256, ge=1, le=1_048_576, description="Bytes shown by --show-preview"
    )

    short_id_chars: int = Field(
        default=16, ge=4, le=128, description="Hex characters kept by --short-ids"
    )

    # ========================================
    # VALIDATORS
    # ========================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate log level is one of allowed values.

        Raises:
            ValueError: If log level not in allowed values
        """
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got '{v}'")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is one of allowed values."""
        allowed = ["console", "json"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"log_format must be one of {allowed}, got '{v}'")
        return v_lower

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Accept the built-in backend name or a module:callable path."""
        v = v.strip()
        if v == "snapshot":
            return v
        module, sep, attr = v.partition(":")
        if not sep or not module or not attr:
            raise ValueError(
                f"backend must be 'snapshot' or 'package.module:factory', got '{v}'"
            )
        return v

    @property
    def is_development(self) -> bool:
        """True if log_level is DEBUG."""
        return self.log_level == "DEBUG"

    model_config = SettingsConfigDict(
        env_prefix="CHUNKSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )


# ============================================================
# HELPER FUNCTIONS
# ============================================================


def get_config_summary(settings: ChunkscopeSettings) -> Dict[str, Any]:
    """
    Get configuration summary for logging/debugging.

    Args:
        settings: ChunkscopeSettings instance

    Returns:
        Configuration summary grouped by category
    """
    return {
        "storage": {
            "backend": settings.backend,
        },
        "display": {
            "default_page_size": settings.default_page_size,
            "preview_bytes": settings.preview_bytes,
            "short_id_chars": settings.short_id_chars,
        },
        "logging": {
            "level": settings.log_level,
            "format": settings.log_format,
        },
    }


# Singleton instance - instantiated once at module import
settings = ChunkscopeSettings()
