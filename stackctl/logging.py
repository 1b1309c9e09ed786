"""Structured logging for stackctl.

Usage:
    from stackctl.logging import setup_logging, get_logger

    setup_logging("stackctl")
    logger = get_logger(__name__)
    logger.info("Running command", command="docker-compose ps")

Configuration via environment variables:
    LOG_LEVEL: DEBUG, INFO, WARN, ERROR (default: INFO)
    LOG_FORMAT: human, json (default: human)
    LOG_FILE: Path to log file (optional)
    LOG_FILE_LEVEL: Level for file output (default: same as LOG_LEVEL)
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

# Constants
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "human"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB
LOG_FILE_BACKUP_COUNT = 3


def _get_log_level(level_str: str) -> int:
    """Convert string log level to logging constant."""
    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
    }
    return levels.get(level_str.upper(), logging.INFO)


def _create_file_handler(log_file: str, level: int) -> RotatingFileHandler:
    """Create a rotating file handler."""
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_logging(tool_name: str) -> None:
    """Configure logging for one stackctl run.

    Args:
        tool_name: Bound to every log line as ``tool``.
    """
    level_str = os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_format = os.environ.get("LOG_FORMAT", DEFAULT_LOG_FORMAT)
    log_file = os.environ.get("LOG_FILE")
    file_level_str = os.environ.get("LOG_FILE_LEVEL", level_str)

    level = _get_log_level(level_str)
    file_level = _get_log_level(file_level_str)

    root_logger = logging.getLogger()
    root_logger.setLevel(min(level, file_level))
    root_logger.handlers.clear()

    # Console goes to stderr; stdout belongs to the dispatched commands
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_file:
        root_logger.addHandler(_create_file_handler(log_file, file_level))

    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=pre_chain,
    )
    for handler in root_logger.handlers:
        handler.setFormatter(formatter)

    structlog.configure(
        processors=pre_chain + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(tool=tool_name)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger."""
    return structlog.get_logger(name)
