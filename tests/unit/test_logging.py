"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from io import StringIO
from pathlib import Path
from typing import Any

import pytest
import structlog

from reviewsuite.config import LoggingConfig
from reviewsuite.logging import (
    add_correlation_id,
    bind_suite_context,
    clear_suite_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Reset logging configuration before each test."""
    root = logging.getLogger()
    root.handlers.clear()

    structlog.reset_defaults()

    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)


@pytest.fixture
def capture_stream() -> StringIO:
    """Create a StringIO stream for capturing log output."""
    return StringIO()


@pytest.fixture
def json_config() -> LoggingConfig:
    """Create a LoggingConfig for JSON output to stderr."""
    return LoggingConfig(level="INFO", format="json", file=None)


@pytest.fixture
def console_config() -> LoggingConfig:
    """Create a LoggingConfig for console output to stderr."""
    return LoggingConfig(level="DEBUG", format="console", file=None)


def _capture(stream: StringIO) -> None:
    logging.getLogger().handlers[0].stream = stream


def test_default_handler_writes_to_stderr(json_config: LoggingConfig) -> None:
    """Test that logs go to stderr so stdout only carries the review."""
    setup_logging(json_config)

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stderr


def test_json_output_format(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that JSON format produces valid JSON output."""
    setup_logging(json_config)
    _capture(capture_stream)

    logger = get_logger("test.module")
    logger.info("test_event", key1="value1", key2=42)

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["event"] == "test_event"
    assert log_entry["key1"] == "value1"
    assert log_entry["key2"] == 42
    assert log_entry["level"] == "info"
    assert log_entry["logger"] == "test.module"
    assert "timestamp" in log_entry


def test_console_output_format(console_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that console format produces human-readable output."""
    setup_logging(console_config)
    _capture(capture_stream)

    logger = get_logger("test.module")
    logger.debug("test_event", status="active")

    output = capture_stream.getvalue()
    assert "test_event" in output
    assert "active" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_log_level_filtering(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that log level filtering works correctly."""
    setup_logging(json_config)
    _capture(capture_stream)

    logger = get_logger("test.module")

    logger.debug("debug_message")
    assert capture_stream.getvalue() == ""

    logger.info("info_message")
    assert "info_message" in capture_stream.getvalue()


def test_correlation_id_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that correlation ID is added to log entries."""
    setup_logging(json_config)
    _capture(capture_stream)

    logger = get_logger("test.module")

    set_correlation_id("run-12345")
    assert get_correlation_id() == "run-12345"

    logger.info("test_with_correlation")
    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["correlation_id"] == "run-12345"

    set_correlation_id(None)
    assert get_correlation_id() is None

    capture_stream.truncate(0)
    capture_stream.seek(0)
    logger.info("test_without_correlation")
    log_entry = json.loads(capture_stream.getvalue().strip())
    assert "correlation_id" not in log_entry


def test_correlation_id_processor() -> None:
    """Test the correlation ID processor directly."""
    event_dict: dict[str, Any] = {"event": "test"}

    result = add_correlation_id(None, "", event_dict.copy())
    assert "correlation_id" not in result

    set_correlation_id("test-id")
    result = add_correlation_id(None, "", event_dict.copy())
    assert result["correlation_id"] == "test-id"

    set_correlation_id(None)


def test_suite_context_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that suite run and stage context is bound and cleared."""
    setup_logging(json_config)
    _capture(capture_stream)

    logger = get_logger("test.module")

    bind_suite_context(run_id="abc123", stage_id="linus")
    logger.info("stage_event")
    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["run_id"] == "abc123"
    assert log_entry["stage_id"] == "linus"

    clear_suite_context()
    capture_stream.truncate(0)
    capture_stream.seek(0)
    logger.info("idle_event")
    log_entry = json.loads(capture_stream.getvalue().strip())
    assert "run_id" not in log_entry
    assert "stage_id" not in log_entry


def test_file_rotation_handler_configuration(tmp_path: Path) -> None:
    """Test that file rotation handler is configured correctly."""
    log_file = tmp_path / "reviewsuite.log"
    config = LoggingConfig(
        level="INFO",
        format="json",
        file=log_file,
        rotation_size_mb=10,
        retention_count=3,
    )

    setup_logging(config)

    assert log_file.exists()

    root = logging.getLogger()
    assert len(root.handlers) == 1

    handler = root.handlers[0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 10 * 1024 * 1024
    assert handler.backupCount == 3

    logger = get_logger("test.module")
    logger.info("test_file_write", data="test")
    handler.flush()

    log_entry = json.loads(log_file.read_text().strip())
    assert log_entry["event"] == "test_file_write"
    assert log_entry["data"] == "test"


def test_file_rotation_creates_parent_directories(tmp_path: Path) -> None:
    """Test that parent directories are created for log file."""
    log_file = tmp_path / "subdir" / "nested" / "reviewsuite.log"
    setup_logging(LoggingConfig(level="INFO", format="json", file=log_file))

    assert log_file.parent.exists()
    assert log_file.exists()


def test_exception_formatting(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that exceptions are formatted correctly in logs."""
    setup_logging(json_config)
    _capture(capture_stream)

    logger = get_logger("test.module")

    try:
        raise ValueError("Test exception")
    except ValueError:
        logger.exception("error_occurred")

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["event"] == "error_occurred"
    assert log_entry["level"] == "error"
    assert "ValueError: Test exception" in log_entry["exception"]
