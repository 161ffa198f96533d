"""
Logger configuration. Build explicitly or via LoggerConfig.from_env().
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True)
class LoggerConfig:
    """Configuration for the ``pagepilot`` logger tree."""

    level: str = "INFO"
    # Directory for the rotating JSON file; None disables the file handler
    log_dir: Optional[str] = None
    log_file_basename: str = "pagepilot"
    max_bytes: int = 5 * 1024 * 1024  # 5 MB
    backup_count: int = 5
    # Handlers are attached here; module loggers inherit through getLogger(__name__)
    root_name: str = "pagepilot"
    console: bool = True
    # Also route uvicorn/fastapi records through the same handlers
    capture_server_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggerConfig":
        """Build config from LOG_* environment variables."""
        return cls(
            level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_dir=os.environ.get("LOG_DIR") or None,
            log_file_basename=os.environ.get("LOG_FILE_BASENAME", "pagepilot"),
            max_bytes=int(os.environ.get("LOG_MAX_BYTES", "5242880")),
            backup_count=int(os.environ.get("LOG_BACKUP_COUNT", "5")),
            root_name=os.environ.get("LOG_ROOT_NAME", "pagepilot"),
            console=os.environ.get("LOG_CONSOLE", "true").lower() in _TRUTHY,
            capture_server_logs=os.environ.get("LOG_CAPTURE_SERVER", "false").lower() in _TRUTHY,
        )
