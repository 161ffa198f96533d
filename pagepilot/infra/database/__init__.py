"""
pagepilot.infra.database – PostgreSQL async engine, session, models and repositories.

Public API
──────────
  build_engine, build_session_factory, init_db, close_engine, ensure_database_exists
  Base, Component, SecurityGroup, Design, MediaItem (models)
  ComponentRepository, SecurityGroupRepository, DesignRepository, MediaRepository
"""
from pagepilot.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from pagepilot.infra.database.models import (
    Base,
    Component,
    Design,
    MediaItem,
    SecurityGroup,
)
from pagepilot.infra.database.repositories import (
    BaseRepository,
    ComponentRepository,
    DesignRepository,
    MediaRepository,
    SecurityGroupRepository,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "init_db",
    "close_engine",
    "ensure_database_exists",
    "Base",
    "Component",
    "SecurityGroup",
    "Design",
    "MediaItem",
    "BaseRepository",
    "ComponentRepository",
    "SecurityGroupRepository",
    "DesignRepository",
    "MediaRepository",
]
