"""Security group repository."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select

from pagepilot.infra.database.models.security_group import SecurityGroup
from pagepilot.infra.database.repositories.base import BaseRepository


class SecurityGroupRepository(BaseRepository[SecurityGroup]):
    model = SecurityGroup

    async def find_by_title(self, client_id: str, title: str) -> Optional[SecurityGroup]:
        """Case-insensitive title lookup scoped to one client."""
        stmt = (
            select(SecurityGroup)
            .where(
                SecurityGroup.client_id == client_id,
                func.lower(SecurityGroup.title) == title.strip().lower(),
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
