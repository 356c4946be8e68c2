# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for structured logging helpers
"""

import json
import logging

import pytest

from src.vpm.config import VPMConfig
from src.vpm.log import JSONFormatter, TextFormatter, configure_logging, get_logger, log_event


class TestFormatters:
    """Test log record formatting"""

    def _record(self, **extra):
        record = logging.LogRecord("src.vpm.test", logging.INFO, __file__, 1, "Installed %s", ("lib",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter(self):
        data = json.loads(JSONFormatter().format(self._record(package="lib")))
        assert data["level"] == "INFO"
        assert data["logger"] == "src.vpm.test"
        assert data["message"] == "Installed lib"
        assert data["package"] == "lib"
        assert data["timestamp"].endswith("Z")

    def test_text_formatter(self):
        line = TextFormatter().format(self._record())
        assert "src.vpm.test - INFO - Installed lib" in line


class TestGetLogger:
    """Test logger configuration"""

    def test_no_duplicate_handlers(self):
        get_logger("src.vpm.tests.dup")
        logger = get_logger("src.vpm.tests.dup", log_level="DEBUG")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            get_logger("src.vpm.tests.bad", log_level="LOUD")

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "vpm.log"
        logger = get_logger("src.vpm.tests.file", log_format="json", log_file=log_file)
        log_event(logger, "package_installed", package="lib", version="1.0.0")
        for handler in logger.handlers:
            handler.flush()

        data = json.loads(log_file.read_text().strip())
        assert data["message"] == "package_installed package=lib version=1.0.0"
        assert data["event"] == "package_installed"
        assert data["version"] == "1.0.0"
        for handler in logger.handlers:
            handler.close()

    def test_configure_logging(self):
        configure_logging(VPMConfig(log_level="WARNING"))
        assert logging.getLogger("src.vpm").level == logging.WARNING
        assert logging.getLogger("src.signing").level == logging.WARNING


class TestLogEvent:
    """Test package event records"""

    def test_fields_reach_the_record(self, caplog):
        logger = logging.getLogger("vpm_tests.event")
        with caplog.at_level(logging.INFO, logger="vpm_tests.event"):
            log_event(logger, "package_uninstalled", package="lib")

        record = caplog.records[-1]
        assert record.getMessage() == "package_uninstalled package=lib"
        assert record.event == "package_uninstalled"
        assert record.package == "lib"

    def test_level(self, caplog):
        logger = logging.getLogger("vpm_tests.event_level")
        with caplog.at_level(logging.DEBUG, logger="vpm_tests.event_level"):
            log_event(logger, "package_skipped", level=logging.WARNING)

        assert caplog.records[-1].levelno == logging.WARNING
        assert caplog.records[-1].getMessage() == "package_skipped"
