"""Design ORM model (one row per client) and the media library it points into."""
from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from pagepilot.infra.database.models.base import Base, TimestampMixin

DESIGN_DOCUMENT_COLUMNS = (
    "header_design",
    "appearance",
    "page_props",
    "link_block",
    "card_block",
    "desktop_background",
    "card_design",
    "button_design",
    "text_props",
)


class Design(Base, TimestampMixin):
    __tablename__ = "designs"

    client_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    header_design: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    appearance: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    page_props: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    link_block: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    card_block: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    desktop_background: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    card_design: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    button_design: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    text_props: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    banner_library_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    background_library_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"client_id": self.client_id}
        for col in DESIGN_DOCUMENT_COLUMNS:
            out[col] = dict(getattr(self, col) or {})
        out["banner_library_id"] = self.banner_library_id
        out["background_library_id"] = self.background_library_id
        return out


class MediaItem(Base, TimestampMixin):
    """Uploaded media; ``s3_key`` is served from the CDN domain."""

    __tablename__ = "media_library"

    library_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    s3_key: Mapped[str] = mapped_column(Text, nullable=False)
