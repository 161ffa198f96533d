"""
pagepilot.infra.database.engine – Async SQLAlchemy 2.0 engine, session factory, init_db.

Accepts PostgresConfig; if not provided, loads from env via load_postgres_config().

ensure_database_exists() can create the target database on first run
(connects to "postgres", then CREATE DATABASE).
"""
from __future__ import annotations

import logging
import re
from urllib.parse import urlparse, urlunparse
from typing import TYPE_CHECKING, Any, Dict, Optional

import asyncpg
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from pagepilot.infra.database.models.base import Base

# Register every ORM model with Base.metadata before create_all()
import pagepilot.infra.database.models  # noqa: F401

if TYPE_CHECKING:
    from pagepilot.config import PostgresConfig

logger = logging.getLogger(__name__)

# Database names accepted by ensure_database_exists (identifier is interpolated)
_DBNAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _make_async_url(url: str) -> str:
    """Convert postgresql:// or postgres:// to postgresql+asyncpg://."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix) and "+asyncpg" not in url:
            return url.replace(prefix, "postgresql+asyncpg://", 1)
    return url


def _parse_db_name_and_postgres_url(url: str) -> tuple[str, str]:
    """Split a DSN into the target database name and a DSN for the "postgres" database."""
    parsed = urlparse(url.replace("postgresql+asyncpg://", "postgresql://", 1))
    path = (parsed.path or "/postgres").strip("/")
    dbname = (path.split("?")[0] or "postgres").strip()
    postgres_url = urlunparse((parsed.scheme, parsed.netloc, "/postgres", parsed.params, parsed.query, parsed.fragment))
    return dbname, postgres_url


def _connect_args(config: "PostgresConfig") -> Dict[str, Any]:
    args: Dict[str, Any] = {
        "server_settings": {
            "application_name": config.application_name,
            "jit": "off",
        }
    }
    if config.ssl != "disable":
        args["ssl"] = config.ssl
    return args


async def ensure_database_exists(config: Optional["PostgresConfig"] = None) -> None:
    """Create the target database when missing. Names outside [a-zA-Z0-9_] are skipped."""
    if config is None:
        from pagepilot.config import load_postgres_config
        config = load_postgres_config()
    dbname, postgres_url = _parse_db_name_and_postgres_url(config.url)
    if dbname == "postgres":
        return
    if not _DBNAME_PATTERN.match(dbname):
        logger.warning("ensure_database_exists: skipping unsafe database name %r", dbname)
        return
    try:
        conn = await asyncpg.connect(postgres_url)
    except (OSError, asyncpg.PostgresError) as e:
        logger.debug("ensure_database_exists: cannot reach postgres (%s); skipping", e)
        return
    try:
        row = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", dbname)
        if row is None:
            await conn.execute(f'CREATE DATABASE "{dbname}"')
            logger.info("Database created: %s", dbname)
    finally:
        await conn.close()


def build_engine(
    config: Optional["PostgresConfig"] = None,
    *,
    echo: Optional[bool] = None,
    use_null_pool: bool = False,
) -> AsyncEngine:
    """
    Create and cache the async SQLAlchemy engine.

    Args:
        config: PostgresConfig (url, pool_size, etc.). If None, loaded from env.
        echo: Override SQL echo (default: use config.echo).
        use_null_pool: Use NullPool (e.g. for tests).
    """
    global _engine
    if _engine is not None:
        return _engine

    if config is None:
        from pagepilot.config import load_postgres_config
        config = load_postgres_config()

    url = _make_async_url(config.url)
    connect_args = _connect_args(config)
    do_echo = echo if echo is not None else config.echo

    if use_null_pool:
        _engine = create_async_engine(
            url,
            echo=do_echo,
            poolclass=NullPool,
            connect_args=connect_args,
        )
        logger.info("AsyncEngine created with NullPool (test mode)")
    else:
        _engine = create_async_engine(
            url,
            echo=do_echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        logger.info(
            "AsyncEngine created: pool_size=%d max_overflow=%d ssl=%s",
            config.pool_size, config.max_overflow, config.ssl,
        )
    return _engine


def build_session_factory(
    engine: Optional[AsyncEngine] = None,
) -> async_sessionmaker[AsyncSession]:
    """Create async session factory bound to engine."""
    global _session_factory
    if _session_factory is not None:
        return _session_factory
    if engine is None:
        engine = build_engine()
    _session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    logger.debug("AsyncSessionFactory created")
    return _session_factory


async def _migrate_db(conn: AsyncConnection) -> None:
    """Add columns introduced after the initial table creation.

    ADD COLUMN IF NOT EXISTS keeps repeated runs safe. Use Alembic in production.
    """
    migrations = [
        # components: derived security flag and ordering
        "ALTER TABLE components ADD COLUMN IF NOT EXISTS is_secured BOOLEAN NOT NULL DEFAULT false",
        "ALTER TABLE components ADD COLUMN IF NOT EXISTS sort_order INTEGER NOT NULL DEFAULT 0",
        # designs: media library pointers
        "ALTER TABLE designs ADD COLUMN IF NOT EXISTS banner_library_id VARCHAR(64)",
        "ALTER TABLE designs ADD COLUMN IF NOT EXISTS background_library_id VARCHAR(64)",
    ]
    for stmt in migrations:
        try:
            await conn.execute(text(stmt))
        except Exception as exc:
            logger.warning("Migration statement skipped (%s): %s", exc.__class__.__name__, stmt)
    logger.info("Database migration complete")


async def init_db(
    config: Optional["PostgresConfig"] = None,
    *,
    drop_all: bool = False,
) -> None:
    """Create all ORM tables and run schema migrations.

    For dev/test only; use Alembic in production.
    """
    if config is None:
        from pagepilot.config import load_postgres_config
        config = load_postgres_config()
    engine = build_engine(config)
    async with engine.begin() as conn:
        if drop_all:
            logger.warning("Dropping all ORM tables (drop_all=True)")
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Creating ORM tables")
        await conn.run_sync(Base.metadata.create_all)
        await _migrate_db(conn)
    logger.info("Database initialised successfully")


async def close_engine() -> None:
    """Dispose the connection pool. Call on app shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("AsyncEngine disposed")
        _engine = None
        _session_factory = None
