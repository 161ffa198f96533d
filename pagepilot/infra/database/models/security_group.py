"""Security groups: client-scoped tags attached to components."""
from __future__ import annotations

import uuid

from sqlalchemy import Column, ForeignKey, String, Table, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from pagepilot.infra.database.models.base import Base, TimestampMixin, _uuid_pk

component_security_groups = Table(
    "component_security_groups",
    Base.metadata,
    Column(
        "component_id",
        String(64),
        ForeignKey("components.component_id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "group_id",
        UUID(as_uuid=True),
        ForeignKey("security_groups.group_id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class SecurityGroup(Base, TimestampMixin):
    __tablename__ = "security_groups"
    __table_args__ = (UniqueConstraint("client_id", "title", name="uq_security_groups_client_title"),)

    group_id: Mapped[uuid.UUID] = _uuid_pk()
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(128), nullable=False)

    def to_dict(self) -> dict:
        return {"group_id": str(self.group_id), "client_id": self.client_id, "title": self.title}
