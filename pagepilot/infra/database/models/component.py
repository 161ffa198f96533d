"""Component ORM model: one block on a client's page."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import Boolean, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pagepilot.infra.database.models.base import Base, TimestampMixin


class Component(Base, TimestampMixin):
    """A page component. ``props``, ``link_props`` and ``layout_json`` are documents."""

    __tablename__ = "components"
    __table_args__ = (
        Index("ix_components_client_type", "client_id", "component_type"),
    )

    component_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    component_type: Mapped[str] = mapped_column(String(32), nullable=False)
    # cards | buttons | texts | images | headers | footers | links | music
    library_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    props: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    link_props: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    layout_json: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_blur: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    schedule_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_secured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Derived: True while at least one security group is attached."""

    security_groups: Mapped[List["SecurityGroup"]] = relationship(  # noqa: F821
        secondary="component_security_groups",
        lazy="selectin",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component_id": self.component_id,
            "client_id": self.client_id,
            "component_type": self.component_type,
            "library_id": self.library_id,
            "props": dict(self.props or {}),
            "link_props": dict(self.link_props or {}),
            "layout_json": dict(self.layout_json or {}),
            "sort_order": self.sort_order,
            "is_blur": self.is_blur,
            "schedule_enabled": self.schedule_enabled,
            "is_secured": self.is_secured,
            "security_groups": sorted(g.title for g in self.security_groups or []),
        }
