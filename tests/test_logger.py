"""
Tests for the logger module.
"""
import logging
import os
import pytest
from unittest.mock import patch, MagicMock
import logger


@pytest.fixture
def cleanup_logger(tmp_path, monkeypatch):
    """Fixture to reset the logger between tests, with log files under tmp_path."""
    monkeypatch.chdir(tmp_path)
    logger._logger = None
    yield
    bbplus_logger = logging.getLogger(logger.LOGGER_NAME)
    for handler in bbplus_logger.handlers[:]:
        handler.close()
        bbplus_logger.removeHandler(handler)
    logger._logger = None


class TestLoggerSetup:
    """Tests for logger setup functionality."""

    def test_setup_logger_defaults(self, cleanup_logger):
        """Test setup_logger with default parameters."""
        log = logger.setup_logger()
        assert log.name == "bbplus"
        assert log.level == logging.INFO
        assert len(log.handlers) == 2  # console and file
        assert isinstance(log.handlers[0], logging.StreamHandler)
        assert isinstance(log.handlers[1], logging.FileHandler)

    def test_log_file_location(self, cleanup_logger, tmp_path):
        logger.setup_logger()
        files = os.listdir(tmp_path / "logs")
        assert len(files) == 1
        assert files[0].startswith("bbplus_")
        assert files[0].endswith(".log")

    def test_file_line_format(self, cleanup_logger, tmp_path):
        log = logger.setup_logger(console_level=logging.CRITICAL)
        logger.info("Retrieving tiramisu-classico")
        log.handlers[1].flush()
        (name,) = os.listdir(tmp_path / "logs")
        line = (tmp_path / "logs" / name).read_text().strip()
        assert line.endswith(" - INFO - Retrieving tiramisu-classico")

    def test_setup_logger_custom_level(self, cleanup_logger):
        log = logger.setup_logger(level=logging.DEBUG)
        assert log.level == logging.DEBUG
        assert log.handlers[0].level == logging.DEBUG
        assert log.handlers[1].level == logging.DEBUG

    def test_setup_logger_console_level(self, cleanup_logger):
        """Console output can be quieter or louder than the file."""
        log = logger.setup_logger(level=logging.INFO, console_level=logging.WARNING)
        assert log.handlers[0].level == logging.WARNING
        assert log.handlers[1].level == logging.INFO

    def test_setup_logger_no_file(self, cleanup_logger, tmp_path):
        log = logger.setup_logger(log_to_file=False)
        assert len(log.handlers) == 1
        assert not (tmp_path / "logs").exists()

    def test_setup_is_idempotent(self, cleanup_logger):
        first = logger.setup_logger(log_to_file=False)
        second = logger.setup_logger(level=logging.DEBUG, log_to_file=False)
        assert first is second
        assert second.level == logging.INFO

    def test_get_logger_creates_logger(self, cleanup_logger):
        log = logger.get_logger()
        assert log is not None
        assert log.level == logging.INFO

    def test_get_logger_returns_existing_logger(self, cleanup_logger):
        original_log = logger.setup_logger(level=logging.DEBUG, log_to_file=False)
        assert logger.get_logger() is original_log


class TestAttach:
    """Tests for routing third-party loggers."""

    def test_attach_shares_handlers(self, cleanup_logger):
        log = logger.setup_logger(log_to_file=False)
        target = logger.attach("bbplus_test_thirdparty")
        try:
            assert target.level == logging.DEBUG
            assert target.propagate is False
            assert log.handlers[0] in target.handlers
        finally:
            target.handlers = []
            target.propagate = True

    def test_attach_twice_does_not_duplicate(self, cleanup_logger):
        logger.setup_logger(log_to_file=False)
        logger.attach("bbplus_test_thirdparty")
        target = logger.attach("bbplus_test_thirdparty")
        try:
            assert len(target.handlers) == 1
        finally:
            target.handlers = []
            target.propagate = True


class TestLoggingFunctions:
    """Tests for logging convenience functions."""

    @pytest.mark.parametrize("name", ["debug", "info", "warning", "error", "critical"])
    @patch('logger.get_logger')
    def test_convenience_function(self, mock_get_logger, name, cleanup_logger):
        mock_logger = MagicMock()
        mock_get_logger.return_value = mock_logger

        getattr(logger, name)("Test message", extra={"k": 1})

        getattr(mock_logger, name).assert_called_once_with("Test message", extra={"k": 1})
