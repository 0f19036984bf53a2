"""
Unit Tests for Logging Module

Tests logger configuration, correlation context, and stage logging.
"""

from unittest.mock import MagicMock

import pytest
import structlog
from structlog.testing import capture_logs

from blobcache.core.config.constants import Stage
from blobcache.core.logging.logger import (
    add_correlation_id,
    add_log_level_name,
    add_timestamp,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_stage,
    set_correlation_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:
    """Test logger creation and configuration."""

    def test_get_logger_returns_logger_instance(self):
        logger = get_logger(__name__)

        assert hasattr(logger, "info")
        assert hasattr(logger, "bind")

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_setup_logging_accepts_both_formats(self, log_format):
        setup_logging(log_level="DEBUG", log_format=log_format)

        assert structlog.is_configured()


@pytest.mark.unit
class TestCorrelationContext:
    """Test correlation ID context management."""

    def test_set_and_clear(self):
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_processor_injects_correlation_id(self):
        set_correlation_id("req-2")
        try:
            event = add_correlation_id(None, "info", {"event": "x"})
        finally:
            clear_correlation_id()

        assert event["correlation_id"] == "req-2"

    def test_processor_skips_when_unset(self):
        clear_correlation_id()

        assert "correlation_id" not in add_correlation_id(None, "info", {"event": "x"})


@pytest.mark.unit
class TestProcessors:
    """Test custom structlog processors."""

    def test_timestamp_is_utc_iso(self):
        event = add_timestamp(None, "info", {})

        assert event["timestamp"].endswith("Z")
        assert "T" in event["timestamp"]

    def test_level_is_upper_cased(self):
        assert add_log_level_name(None, "info", {"level": "warning"})["level"] == "WARNING"

    def test_level_name_missing_is_noop(self):
        assert add_log_level_name(None, "info", {}) == {}


@pytest.mark.unit
class TestLogStage:
    """Test stage-tagged logging."""

    def test_log_stage_uses_enum_value(self):
        with capture_logs() as logs:
            log_stage(get_logger("test"), Stage.WRITE, "Cache entry stored", cache_key="k")

        assert logs[0]["event"] == "Cache entry stored"
        assert logs[0]["stage"] == "1.0_CACHE_WRITE"
        assert logs[0]["cache_key"] == "k"
        assert logs[0]["log_level"] == "info"

    def test_log_stage_accepts_plain_string_and_level(self):
        logger = MagicMock()

        log_stage(logger, "X", "careful", level="WARNING", extra=1)

        logger.warning.assert_called_once_with("careful", stage="X", extra=1)
