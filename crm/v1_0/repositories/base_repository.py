from typing import Any, Optional, Sequence, Type, TypeVar, Generic, Protocol, runtime_checkable
from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

# --- models must expose .id ---
@runtime_checkable
class HasId(Protocol):
    id: Any  # PK column

ModelT = TypeVar("ModelT", bound=HasId)


class BaseRepository(Generic[ModelT]):
    def __init__(self, model: Type[ModelT]):
        self.model = model

    async def add(self, entity: ModelT, session: AsyncSession) -> ModelT:
        session.add(entity)
        try:
            await session.flush([entity])
        except IntegrityError:
            await session.rollback()
            raise
        return entity

    async def get_by_id(
        self,
        id_: Any,
        session: AsyncSession,
        *,
        options: Sequence[Any] | None = None,
    ) -> Optional[ModelT]:
        stmt: Select = select(self.model).where(self.model.id == id_)
        if options:
            stmt = stmt.options(*options)
        res = await session.execute(stmt)
        return res.scalars().first()

    async def list_all(
        self,
        session: AsyncSession,
        *,
        order_by: Any | None = None,
        options: Sequence[Any] | None = None,
    ) -> list[ModelT]:
        if order_by is None:
            order_by = self.model.id.desc()
        stmt: Select = select(self.model).order_by(order_by)
        if options:
            stmt = stmt.options(*options)
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def update(self, entity: ModelT, session: AsyncSession) -> ModelT:
        await session.flush([entity])
        return entity

    async def delete(self, entity: ModelT, session: AsyncSession) -> None:
        await session.delete(entity)
        await session.flush()
