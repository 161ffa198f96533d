"""Generic async repository for SQLAlchemy 2.0."""
from __future__ import annotations

from typing import Any, ClassVar, Generic, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    """Primary-key access shared by all repositories. Callers own the transaction."""

    model: ClassVar[type]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, id: Any) -> Optional[ModelT]:
        return await self.session.get(self.model, id)  # type: ignore[return-value]

    async def get_for_update(self, id: Any) -> Optional[ModelT]:
        """Load by primary key holding a row lock until the transaction ends."""
        return await self.session.get(self.model, id, with_for_update=True)  # type: ignore[return-value]

    async def create(self, data: dict[str, Any]) -> ModelT:
        instance = self.model(**data)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance  # type: ignore[return-value]

    async def update(self, instance: ModelT, data: dict[str, Any]) -> ModelT:
        for attr, value in data.items():
            setattr(instance, attr, value)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, instance: ModelT) -> None:
        await self.session.delete(instance)
        await self.session.flush()
