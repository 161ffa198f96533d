"""Repositories for the pagepilot database."""
from pagepilot.infra.database.repositories.base import BaseRepository
from pagepilot.infra.database.repositories.component import (
    ComponentRepository,
    predicate_clause,
)
from pagepilot.infra.database.repositories.design import DesignRepository, MediaRepository
from pagepilot.infra.database.repositories.security_group import SecurityGroupRepository

__all__ = [
    "BaseRepository",
    "ComponentRepository",
    "predicate_clause",
    "SecurityGroupRepository",
    "DesignRepository",
    "MediaRepository",
]
