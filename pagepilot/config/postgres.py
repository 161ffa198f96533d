"""
pagepilot.config.postgres – PostgreSQL connection config (dataclass + validators).

Env vars: DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT,
DB_POOL_RECYCLE, DB_ECHO, DB_SSL, DB_APPLICATION_NAME.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = ("1", "true", "yes")
_SSL_MODES = frozenset({"disable", "require", "verify-full"})


def _validate_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise ValueError("DATABASE_URL is required and must be non-empty")
    if not (
        url.startswith("postgresql://")
        or url.startswith("postgres://")
        or url.startswith("postgresql+asyncpg://")
    ):
        raise ValueError(
            "DATABASE_URL must start with postgresql://, postgres:// "
            "or postgresql+asyncpg://"
        )
    return url


def _validate_int(value: int, name: str, min_val: int) -> int:
    if not isinstance(value, int) or value < min_val:
        raise ValueError(f"{name} must be an integer >= {min_val}, got {value!r}")
    return value


@dataclass(frozen=True)
class PostgresConfig:
    """
    PostgreSQL connection and pool configuration.

    All fields are validated on construction. Use load_postgres_config()
    to build from environment variables.
    """

    url: str
    """DSN (postgresql:// or postgres://). Converted to postgresql+asyncpg in engine."""

    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    """Seconds to wait for a connection from the pool."""

    pool_recycle: int = 1800
    echo: bool = False
    """Log SQL statements (debug)."""

    ssl: str = "disable"
    """asyncpg ssl mode: disable | require | verify-full. Hosted Postgres usually needs require."""

    application_name: str = "pagepilot"

    def __post_init__(self) -> None:
        _validate_url(self.url)
        _validate_int(self.pool_size, "pool_size", 1)
        _validate_int(self.max_overflow, "max_overflow", 0)
        _validate_int(self.pool_timeout, "pool_timeout", 1)
        _validate_int(self.pool_recycle, "pool_recycle", 1)
        if not isinstance(self.echo, bool):
            raise ValueError("echo must be a boolean")
        if self.ssl not in _SSL_MODES:
            raise ValueError(f"ssl must be one of {sorted(_SSL_MODES)}, got {self.ssl!r}")
        if not isinstance(self.application_name, str) or not self.application_name.strip():
            raise ValueError("application_name must be a non-empty string")

    @classmethod
    def from_env(cls, **overrides: object) -> PostgresConfig:
        """
        Build config from environment variables; keyword overrides win over env.

        Env:
            DATABASE_URL          – default postgresql://localhost/pagepilot
            DB_POOL_SIZE          – default 10
            DB_MAX_OVERFLOW       – default 20
            DB_POOL_TIMEOUT       – default 30
            DB_POOL_RECYCLE       – default 1800
            DB_ECHO               – "1" / "true" / "yes" → True
            DB_SSL                – default disable
            DB_APPLICATION_NAME   – default pagepilot
        """
        env_names = {
            "url": "DATABASE_URL",
            "pool_size": "DB_POOL_SIZE",
            "max_overflow": "DB_MAX_OVERFLOW",
            "pool_timeout": "DB_POOL_TIMEOUT",
            "pool_recycle": "DB_POOL_RECYCLE",
            "echo": "DB_ECHO",
            "ssl": "DB_SSL",
            "application_name": "DB_APPLICATION_NAME",
        }

        def _raw(attr: str, default: str) -> object:
            v = overrides.get(attr)
            if v is not None:
                return v
            return os.environ.get(env_names[attr], default)

        echo = _raw("echo", "false")
        if isinstance(echo, str):
            echo = echo.strip().lower() in _TRUTHY
        return cls(
            url=_validate_url(str(_raw("url", "postgresql://localhost/pagepilot"))),
            pool_size=int(_raw("pool_size", "10")),
            max_overflow=int(_raw("max_overflow", "20")),
            pool_timeout=int(_raw("pool_timeout", "30")),
            pool_recycle=int(_raw("pool_recycle", "1800")),
            echo=bool(echo),
            ssl=str(_raw("ssl", "disable")).strip().lower(),
            application_name=str(_raw("application_name", "pagepilot")),
        )


def load_postgres_config(**overrides: object) -> PostgresConfig:
    """Load and validate PostgreSQL config from environment (with optional overrides).

    Raises ValueError on invalid env/values.
    """
    return PostgresConfig.from_env(**overrides)
