"""
Unit tests for LoggingService and the logger_factory wrapper.

Copyright (c) 2025 Goncharenko Anton aka alienxs2
License: MIT
"""

import io
import json

import pytest

from chunkscope_core.config import settings
from chunkscope_core.exceptions import StorageIOError
from chunkscope_core.logging_service import LoggingConfig, LoggingService
from chunkscope_core.utils import configure_logging, get_logger

# ============================================================
# FIXTURES
# ============================================================


@pytest.fixture
def unconfigured():
    """Start from an unconfigured service."""
    LoggingService._configured = False
    LoggingService._loggers = {}
    yield


@pytest.fixture
def captured(unconfigured):
    """Configure JSON logging into a buffer and return it."""
    stream = io.StringIO()
    LoggingService.configure_logging(
        config=LoggingConfig(level="INFO", format="json", output_stream=stream)
    )
    return stream


def records(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


# ============================================================
# CONFIGURATION TESTS
# ============================================================


def test_double_configure_rejected():
    with pytest.raises(RuntimeError):
        LoggingService.configure_logging(level="INFO")


@pytest.mark.parametrize("level, fmt", [("LOUD", "json"), ("INFO", "xml")])
def test_invalid_configuration(unconfigured, level, fmt):
    with pytest.raises(ValueError):
        LoggingService.configure_logging(level=level, format=fmt)


def test_get_logger_requires_configuration(unconfigured):
    with pytest.raises(RuntimeError):
        get_logger("chunkscope.test")


def test_configure_logging_uses_settings(unconfigured):
    configure_logging()

    assert LoggingService.is_configured()
    assert LoggingService._log_level == settings.log_level
    assert LoggingService._config.format == settings.log_format


def test_default_stream_is_stderr():
    assert LoggingConfig().output_stream is not None


# ============================================================
# LOGGER TESTS
# ============================================================


def test_get_logger_caches_instances():
    assert get_logger("module.one") is get_logger("module.one")
    assert get_logger("module.one") is not get_logger("module.two")


@pytest.mark.parametrize("name", ["", "x" * 201])
def test_get_logger_rejects_bad_names(name):
    with pytest.raises(ValueError):
        get_logger(name)


def test_events_are_json(captured):
    get_logger("chunkscope.test").info("chunk_read", chunk_id="cafe")

    (record,) = records(captured)
    assert record["event"] == "chunk_read"
    assert record["chunk_id"] == "cafe"
    assert record["logger"] == "chunkscope.test"
    assert record["level"] == "info"


def test_level_filtering(captured):
    get_logger("chunkscope.test").debug("hidden")

    assert records(captured) == []


def test_log_error(captured):
    error = StorageIOError("short read", error_code="IO_002")

    LoggingService.log_error(error, "corr-1", context={"path": "/data"})

    (record,) = records(captured)
    assert record["event"] == "error_occurred"
    assert record["error_type"] == "StorageIOError"
    assert record["error_code"] == "IO_002"
    assert record["correlation_id"] == "corr-1"
    assert record["path"] == "/data"


def test_log_error_requires_correlation_id(captured):
    with pytest.raises(ValueError):
        LoggingService.log_error(ValueError("x"), "")
