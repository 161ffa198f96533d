"""Design and media library repositories."""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from sqlalchemy import select

from pagepilot.infra.database.models.design import Design, MediaItem
from pagepilot.infra.database.repositories.base import BaseRepository


class DesignRepository(BaseRepository[Design]):
    model = Design

    async def get_for_client(self, client_id: str) -> Optional[Design]:
        return await self.get_by_id(client_id)

    async def lock_for_client(self, client_id: str) -> Optional[Design]:
        return await self.get_for_update(client_id)


class MediaRepository(BaseRepository[MediaItem]):
    model = MediaItem

    async def s3_keys(self, client_id: str, library_ids: Iterable[Optional[str]]) -> Dict[str, str]:
        """Map library id -> s3 key for the ids that exist for this client."""
        ids = [i for i in library_ids if i]
        if not ids:
            return {}
        stmt = select(MediaItem.library_id, MediaItem.s3_key).where(
            MediaItem.client_id == client_id,
            MediaItem.library_id.in_(ids),
        )
        result = await self.session.execute(stmt)
        return {row.library_id: row.s3_key for row in result}
