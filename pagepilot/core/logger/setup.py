"""
Logger setup: attach console and rotating JSON file handlers from config.
"""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from pagepilot.core.logger.config import LoggerConfig
from pagepilot.core.logger.formatters import JsonFormatter, PlainConsoleFormatter

_configured: Optional[LoggerConfig] = None

_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "fastapi")


def _build_handlers(config: LoggerConfig, level: int) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if config.console:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(PlainConsoleFormatter())
        handlers.append(console)

    if config.log_dir and config.log_dir.strip():
        try:
            os.makedirs(config.log_dir, exist_ok=True)
        except OSError:
            logging.getLogger(config.root_name).warning(
                "Could not create log dir %s, skipping file handler", config.log_dir
            )
        else:
            file_handler = RotatingFileHandler(
                os.path.join(config.log_dir, f"{config.log_file_basename}.log"),
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(JsonFormatter())
            handlers.append(file_handler)
    return handlers


def configure(config: Optional[LoggerConfig] = None) -> LoggerConfig:
    """Configure the project logger tree. Safe to call more than once (tests)."""
    global _configured
    config = config or LoggerConfig.from_env()
    level = getattr(logging, config.level.upper(), logging.INFO)

    root = logging.getLogger(config.root_name)
    root.setLevel(level)
    root.handlers.clear()
    handlers = _build_handlers(config, level)
    for handler in handlers:
        root.addHandler(handler)
    root.propagate = False

    if config.capture_server_logs:
        for name in _SERVER_LOGGERS:
            server_logger = logging.getLogger(name)
            server_logger.handlers = list(handlers)
            server_logger.propagate = False

    _configured = config
    return config


def get_logger(name: str) -> logging.Logger:
    """Return a logger, configuring the tree from env on first use."""
    if _configured is None:
        configure()
    return logging.getLogger(name)
