"""StyleStore: read and write the single design row of a client."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pagepilot.config.style import StyleStoreConfig
from pagepilot.core.exceptions import SubjectNotFoundError
from pagepilot.infra.database.repositories.design import DesignRepository, MediaRepository
from pagepilot.orchestrator.fields.compiler import (
    WriteInstruction,
    apply_instructions,
    touched_columns,
)
from pagepilot.services.record_store import store_transaction

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class StyleStore:
    def __init__(
        self,
        session_factory: "async_sessionmaker[AsyncSession]",
        config: Optional[StyleStoreConfig] = None,
    ) -> None:
        self._session_factory = session_factory
        self._config = config or StyleStoreConfig()

    def _tx(self, operation: str):
        return store_transaction(self._session_factory, "StyleStore", operation)

    @staticmethod
    def _missing(client_id: str) -> SubjectNotFoundError:
        return SubjectNotFoundError(
            f"No design for client {client_id}",
            details={"client_id": client_id},
            hint="This page has no design yet.",
        )

    async def fetch(self, client_id: str) -> Dict[str, Any]:
        """Design row plus ``banner_media_url`` / ``background_media_url`` resolved through the CDN."""
        async with self._tx("fetch") as session:
            design = await DesignRepository(session).get_for_client(client_id)
            if design is None:
                raise self._missing(client_id)
            out = design.to_dict()
            keys = await MediaRepository(session).s3_keys(
                client_id, [design.banner_library_id, design.background_library_id]
            )
        out["banner_media_url"] = self._config.media_url(keys.get(design.banner_library_id or ""))
        out["background_media_url"] = self._config.media_url(
            keys.get(design.background_library_id or "")
        )
        return out

    async def apply_write(
        self,
        client_id: str,
        instructions: List[WriteInstruction],
    ) -> Dict[str, Any]:
        async with self._tx("apply_write") as session:
            repo = DesignRepository(session)
            design = await repo.lock_for_client(client_id)
            if design is None:
                raise self._missing(client_id)
            columns = touched_columns(instructions)
            snapshot = {col: getattr(design, col) for col in columns}
            updated = await repo.update(design, apply_instructions(snapshot, instructions))
            logger.info("StyleStore: wrote %s for client %s", ", ".join(columns), client_id)
            return updated.to_dict()
