"""
Project logger: console + optional rotating JSON-lines file.

Usage:
    from pagepilot.core.logger import configure, get_logger, LoggerConfig

    configure(LoggerConfig(level="DEBUG", log_dir="/var/log/pagepilot"))
    configure()  # or from env: LOG_LEVEL, LOG_DIR, LOG_FILE_BASENAME, ...

    logger = get_logger(__name__)
    logger.info("RecordHandler: updated component %s", component_id)
"""
from pagepilot.core.logger.config import LoggerConfig
from pagepilot.core.logger.formatters import JsonFormatter, PlainConsoleFormatter
from pagepilot.core.logger.setup import configure, get_logger

__all__ = [
    "LoggerConfig",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "configure",
    "get_logger",
]
