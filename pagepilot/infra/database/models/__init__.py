"""
pagepilot.infra.database.models – SQLAlchemy 2.0 ORM models.

Exports Base, mixins, and all model classes.
"""
from pagepilot.infra.database.models.base import Base, TimestampMixin, _uuid_pk
from pagepilot.infra.database.models.component import Component
from pagepilot.infra.database.models.design import DESIGN_DOCUMENT_COLUMNS, Design, MediaItem
from pagepilot.infra.database.models.security_group import (
    SecurityGroup,
    component_security_groups,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "_uuid_pk",
    "Component",
    "SecurityGroup",
    "component_security_groups",
    "Design",
    "MediaItem",
    "DESIGN_DOCUMENT_COLUMNS",
]
