"""Tests for structlog setup."""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler

import pytest
import structlog

from stackctl.logging import _get_log_level, get_logger, setup_logging


@pytest.fixture(autouse=True)
def log_env(monkeypatch):
    """Clean LOG_* variables; undo handler and structlog changes afterwards."""
    for var in ("LOG_LEVEL", "LOG_FORMAT", "LOG_FILE", "LOG_FILE_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    root = logging.getLogger()
    level = root.level
    yield monkeypatch
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def _own_handlers():
    return [h for h in logging.getLogger().handlers if type(h) in (logging.StreamHandler, RotatingFileHandler)]


def _flush():
    for handler in _own_handlers():
        handler.flush()


class TestLogLevel:
    @pytest.mark.parametrize("value,expected", [
        ("DEBUG", logging.DEBUG),
        ("info", logging.INFO),
        ("WARN", logging.WARNING),
        ("warning", logging.WARNING),
        ("ERROR", logging.ERROR),
        ("verbose", logging.INFO),
    ])
    def test_mapping(self, value, expected):
        assert _get_log_level(value) == expected


class TestSetupLogging:
    def test_console_handler_on_stderr(self):
        setup_logging("stackctl")
        [handler] = _own_handlers()
        assert handler.stream is sys.stderr
        assert handler.level == logging.INFO
        assert logging.getLogger().level == logging.INFO

    def test_log_level_from_env(self, log_env):
        log_env.setenv("LOG_LEVEL", "DEBUG")
        setup_logging("stackctl")
        [handler] = _own_handlers()
        assert handler.level == logging.DEBUG

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging("stackctl")
        setup_logging("stackctl")
        assert len(_own_handlers()) == 1

    def test_file_handler(self, log_env, tmp_path):
        log_file = tmp_path / "logs" / "stackctl.log"
        log_env.setenv("LOG_FILE", str(log_file))
        log_env.setenv("LOG_LEVEL", "WARNING")
        log_env.setenv("LOG_FILE_LEVEL", "DEBUG")
        setup_logging("stackctl")

        [file_handler] = [h for h in _own_handlers() if isinstance(h, RotatingFileHandler)]
        assert file_handler.level == logging.DEBUG
        assert logging.getLogger().level == logging.DEBUG
        assert log_file.parent.is_dir()

        get_logger("stackctl.test").debug("Running command", command="docker-compose ps")
        _flush()
        assert "Running command" in log_file.read_text(encoding="utf-8")

    def test_json_format(self, log_env, tmp_path):
        log_file = tmp_path / "stackctl.log"
        log_env.setenv("LOG_FILE", str(log_file))
        log_env.setenv("LOG_FORMAT", "json")
        setup_logging("stackctl")

        get_logger("stackctl.test").warning("Backend health check failed", url="http://localhost:5921/api/health")
        _flush()

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["event"] == "Backend health check failed"
        assert entry["level"] == "warning"
        assert entry["url"] == "http://localhost:5921/api/health"
        assert entry["tool"] == "stackctl"
        assert "timestamp" in entry

    def test_human_format_is_not_json(self, log_env, tmp_path):
        log_file = tmp_path / "stackctl.log"
        log_env.setenv("LOG_FILE", str(log_file))
        setup_logging("stackctl")

        get_logger("stackctl.test").info("Running command", command="docker-compose ps")
        _flush()

        line = log_file.read_text(encoding="utf-8").splitlines()[-1]
        assert "Running command" in line
        assert "tool=" in line and "stackctl" in line
        with pytest.raises(json.JSONDecodeError):
            json.loads(line)
