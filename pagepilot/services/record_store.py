"""RecordStore: the only path from handlers to the ``components`` table.

Every public method runs in its own transaction. Driver and constraint
failures surface as ``StoreError``; a missing component as
``SubjectNotFoundError``. Returned rows are plain dicts.
"""
from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, AsyncIterator, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from pagepilot.core.exceptions import StoreError, SubjectNotFoundError
from pagepilot.infra.database.repositories.component import ComponentRepository
from pagepilot.infra.database.repositories.security_group import SecurityGroupRepository
from pagepilot.orchestrator.fields.compiler import (
    WriteInstruction,
    apply_instructions,
    touched_columns,
)

if TYPE_CHECKING:
    from pagepilot.infra.database.models.component import Component
    from pagepilot.orchestrator.fields.criteria import Predicate
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagResult:
    """Outcome of attaching or detaching one security group."""

    still_tagged: bool
    """Whether the group is attached after the call."""

    changed: bool
    is_secured: bool = False


@asynccontextmanager
async def store_transaction(
    session_factory: "async_sessionmaker[AsyncSession]",
    store: str,
    operation: str,
) -> AsyncIterator["AsyncSession"]:
    """One session, one transaction; SQLAlchemy failures become StoreError."""
    try:
        async with session_factory() as session:
            async with session.begin():
                yield session
    except SQLAlchemyError as exc:
        logger.error("%s.%s failed: %s", store, operation, exc)
        raise StoreError(
            f"{store}.{operation} failed",
            details={"operation": operation},
            hint="The change could not be saved right now. Please try again.",
            cause=exc,
        ) from exc


class RecordStore:
    def __init__(self, session_factory: "async_sessionmaker[AsyncSession]") -> None:
        self._session_factory = session_factory

    def _tx(self, operation: str):
        return store_transaction(self._session_factory, "RecordStore", operation)

    @staticmethod
    def _missing(client_id: str, component_id: str) -> SubjectNotFoundError:
        return SubjectNotFoundError(
            f"Component {component_id} not found",
            details={"client_id": client_id, "component_id": component_id},
            hint=f"I couldn't find a component with id {component_id}.",
        )

    async def fetch_one(self, client_id: str, component_id: str) -> Dict[str, Any]:
        async with self._tx("fetch_one") as session:
            row = await ComponentRepository(session).get_for_client(client_id, component_id)
            if row is None:
                raise self._missing(client_id, component_id)
            return row.to_dict()

    async def fetch_all(self, client_id: str) -> List[Dict[str, Any]]:
        async with self._tx("fetch_all") as session:
            rows = await ComponentRepository(session).list_for_client(client_id)
            return [r.to_dict() for r in rows]

    async def search(self, client_id: str, predicates: Sequence["Predicate"]) -> List[Dict[str, Any]]:
        async with self._tx("search") as session:
            rows = await ComponentRepository(session).search(client_id, predicates)
            logger.debug(
                "RecordStore: search client=%s predicates=%d -> %d rows",
                client_id, len(predicates), len(rows),
            )
            return [r.to_dict() for r in rows]

    async def create(
        self,
        client_id: str,
        component_type: str,
        *,
        props: Optional[Dict[str, Any]] = None,
        link_props: Optional[Dict[str, Any]] = None,
        layout_json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        async with self._tx("create") as session:
            repo = ComponentRepository(session)
            row = await repo.create_component({
                "component_id": uuid.uuid4().hex,
                "client_id": client_id,
                "component_type": component_type,
                "props": dict(props or {}),
                "link_props": dict(link_props or {}),
                "layout_json": dict(layout_json or {}),
                "sort_order": await repo.next_sort_order(client_id),
            })
            logger.info("RecordStore: created %s component %s", component_type, row.component_id)
            return row.to_dict()

    async def apply_write(
        self,
        client_id: str,
        component_id: str,
        instructions: List[WriteInstruction],
    ) -> Dict[str, Any]:
        """Lock the row, apply the plan in order and return the row as written."""
        async with self._tx("apply_write") as session:
            repo = ComponentRepository(session)
            row = await repo.lock_for_client(client_id, component_id)
            if row is None:
                raise self._missing(client_id, component_id)
            columns = touched_columns(instructions)
            snapshot = {col: getattr(row, col) for col in columns}
            updated = await repo.update(row, apply_instructions(snapshot, instructions))
            logger.info(
                "RecordStore: wrote %s on component %s", ", ".join(columns), component_id,
            )
            return updated.to_dict()

    async def remove(self, client_id: str, component_id: str) -> None:
        async with self._tx("remove") as session:
            repo = ComponentRepository(session)
            row = await repo.lock_for_client(client_id, component_id)
            if row is None:
                raise self._missing(client_id, component_id)
            await repo.delete(row)
            logger.info("RecordStore: deleted component %s", component_id)

    async def find_tag(self, client_id: str, title: str) -> Optional[Dict[str, Any]]:
        async with self._tx("find_tag") as session:
            group = await SecurityGroupRepository(session).find_by_title(client_id, title)
            return group.to_dict() if group else None

    async def attach_tag(self, client_id: str, component_id: str, group_id: str) -> TagResult:
        async with self._tx("attach_tag") as session:
            row, group = await self._load_tag_pair(session, client_id, component_id, group_id)
            if any(g.group_id == group.group_id for g in row.security_groups):
                return TagResult(still_tagged=True, changed=False, is_secured=row.is_secured)
            row.security_groups.append(group)
            row.is_secured = True
            await session.flush()
            return TagResult(still_tagged=True, changed=True, is_secured=True)

    async def detach_tag(self, client_id: str, component_id: str, group_id: str) -> TagResult:
        async with self._tx("detach_tag") as session:
            row, group = await self._load_tag_pair(session, client_id, component_id, group_id)
            remaining = [g for g in row.security_groups if g.group_id != group.group_id]
            if len(remaining) == len(row.security_groups):
                return TagResult(still_tagged=False, changed=False, is_secured=row.is_secured)
            row.security_groups = remaining
            row.is_secured = bool(remaining)
            await session.flush()
            return TagResult(still_tagged=False, changed=True, is_secured=row.is_secured)

    async def _load_tag_pair(self, session, client_id: str, component_id: str, group_id: str):
        row: Optional["Component"] = await ComponentRepository(session).lock_for_client(
            client_id, component_id
        )
        if row is None:
            raise self._missing(client_id, component_id)
        group = await SecurityGroupRepository(session).get_by_id(uuid.UUID(str(group_id)))
        if group is None or group.client_id != client_id:
            raise SubjectNotFoundError(
                f"Security group {group_id} not found",
                details={"client_id": client_id, "group_id": str(group_id)},
            )
        return row, group
