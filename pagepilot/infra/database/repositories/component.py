"""Component repository: client-scoped lookups, predicate search and row locks."""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

from sqlalchemy import Text, and_, cast, func, select
from sqlalchemy.sql.elements import ColumnElement

from pagepilot.infra.database.models.component import Component
from pagepilot.infra.database.repositories.base import BaseRepository
from pagepilot.orchestrator.fields.criteria import Comparator, Predicate

_LIKE_ESCAPE = "\\"


def _escape_like(value: str) -> str:
    return (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def predicate_clause(predicate: Predicate) -> ColumnElement[bool]:
    """Render one predicate as a bound SQL expression on ``components``.

    Document keys read through ``->>``; plain columns are cast to text so
    boolean flags compare against "true"/"false".
    """
    column = getattr(Component, predicate.column)
    if predicate.json_key:
        target = column[predicate.json_key].astext
    else:
        target = cast(column, Text)
    if predicate.comparator is Comparator.EQUALS:
        return func.lower(target) == predicate.value.lower()
    return target.ilike(f"%{_escape_like(predicate.value)}%", escape=_LIKE_ESCAPE)


class ComponentRepository(BaseRepository[Component]):
    model = Component

    def _scoped(self, client_id: str):
        return select(Component).where(Component.client_id == client_id)

    async def get_for_client(self, client_id: str, component_id: str) -> Optional[Component]:
        stmt = self._scoped(client_id).where(Component.component_id == component_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def lock_for_client(self, client_id: str, component_id: str) -> Optional[Component]:
        """Same as get_for_client but holds ``FOR UPDATE`` on the row."""
        stmt = (
            self._scoped(client_id)
            .where(Component.component_id == component_id)
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_client(self, client_id: str, *, limit: int = 200) -> List[Component]:
        stmt = (
            self._scoped(client_id)
            .order_by(Component.sort_order, Component.component_id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    def search_statement(self, client_id: str, predicates: Sequence[Predicate], *, limit: int = 50):
        stmt = self._scoped(client_id)
        if predicates:
            stmt = stmt.where(and_(*(predicate_clause(p) for p in predicates)))
        return stmt.order_by(Component.sort_order, Component.component_id).limit(limit)

    async def search(
        self, client_id: str, predicates: Sequence[Predicate], *, limit: int = 50
    ) -> List[Component]:
        result = await self.session.execute(self.search_statement(client_id, predicates, limit=limit))
        return list(result.scalars().all())

    async def next_sort_order(self, client_id: str) -> int:
        stmt = select(func.coalesce(func.max(Component.sort_order), -1)).where(
            Component.client_id == client_id
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one()) + 1

    async def create_component(self, data: dict[str, Any]) -> Component:
        return await self.create(data)
