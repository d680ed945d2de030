"""Unit tests for logging infrastructure."""
import pytest
import logging
from pathlib import Path
from rich.logging import RichHandler
from wav2mp3.infrastructure.logging import setup_logging


def _flush(logger):
    for handler in logging.getLogger().handlers:
        handler.flush()


def test_setup_logging_creates_log_file(tmp_path):
    """Test that setup_logging creates log file and its parent directory."""
    log_file = tmp_path / "logs" / "conversion.log"

    logger = setup_logging(log_file, debug=False)

    assert isinstance(logger, logging.Logger)
    assert log_file.exists()


def test_setup_logging_debug_mode(tmp_path):
    """Test setup_logging in debug mode."""
    logger = setup_logging(tmp_path / "conversion.log", debug=True)

    assert logger.getEffectiveLevel() == logging.DEBUG


def test_setup_logging_normal_mode(tmp_path):
    """Test setup_logging in normal mode."""
    logger = setup_logging(tmp_path / "conversion.log", debug=False)

    assert logger.getEffectiveLevel() == logging.INFO


def test_setup_logging_writes_to_file(tmp_path):
    """Test that logger actually writes to file with timestamp and level."""
    log_file = tmp_path / "conversion.log"
    logger = setup_logging(log_file, debug=False)

    logger.info("Test log message for verification")
    logger.warning("Warning message")
    _flush(logger)

    content = log_file.read_text()
    assert "Test log message for verification" in content
    assert " - INFO - " in content
    assert " - WARNING - " in content


def test_setup_logging_debug_messages(tmp_path):
    """Test that debug messages only appear in debug mode."""
    log_file = tmp_path / "conversion.log"

    logger_normal = setup_logging(log_file, debug=False)
    logger_normal.debug("Debug message in normal mode")
    _flush(logger_normal)
    assert "Debug message in normal mode" not in log_file.read_text()

    logger_debug = setup_logging(log_file, debug=True)
    logger_debug.debug("Debug message in debug mode")
    _flush(logger_debug)
    assert "Debug message in debug mode" in log_file.read_text()


def test_setup_logging_without_path_uses_rich_stderr():
    """Without a log path records go to a rich handler showing warnings only."""
    setup_logging(None, debug=False)

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], RichHandler)
    assert handlers[0].level == logging.WARNING


def test_setup_logging_without_path_debug_shows_everything():
    setup_logging(None, debug=True)

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler, RichHandler)
    assert handler.level == logging.DEBUG
