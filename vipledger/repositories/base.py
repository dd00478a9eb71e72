"""
Base repository.

Generic data access shared by the ledger repositories. Repositories flush
but never commit; the calling service owns the transaction.
"""

from decimal import Decimal
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from vipledger.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


def as_decimal(value: Any) -> Decimal:
    """Normalise a SUM/COALESCE result to Decimal (SQLite may return int or float)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class BaseRepository(Generic[ModelType]):
    """
    Generic repository over one mapped model.

    Example:
        class PurchaseRepository(BaseRepository[Purchase]):
            def __init__(self, session: AsyncSession):
                super().__init__(Purchase, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """Entity by primary key, from the identity map when loaded."""
        return await self.session.get(self.model, id)

    def is_sqlite(self) -> bool:
        """Whether the session is bound to SQLite."""
        return self.session.get_bind().dialect.name == "sqlite"

    async def acquire_write_lock(self, id: int) -> None:
        """
        Take the lock that serialises writers of the row.

        SQLite drops FOR UPDATE and only locks on the first write, so a
        no-op UPDATE of the row takes the database write lock up front.
        Writers queue on it through the busy timeout and then read committed
        state. Elsewhere the FOR UPDATE of the following SELECT is the lock.
        """
        if not self.is_sqlite():
            return
        table = self.model.__table__
        await self.session.execute(
            update(table).where(table.c.id == id).values(id=table.c.id)
        )

    async def get_for_update(self, id: int) -> ModelType | None:
        """Entity by primary key, locked until the transaction ends."""
        await self.acquire_write_lock(id)
        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(self, **filters: Any) -> ModelType | None:
        """First entity matching equality filters."""
        stmt = select(self.model).filter_by(**filters).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by(self, **filters: Any) -> list[ModelType]:
        """All entities matching equality filters, in id order."""
        stmt = select(self.model).filter_by(**filters).order_by(self.model.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Add and flush a new entity.

        Args:
            **data: Column values

        Returns:
            Created entity with its id assigned

        Raises:
            IntegrityError: On a unique or check constraint violation
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update(
        self, id: int, for_update: bool = False, **data: Any
    ) -> ModelType | None:
        """
        Set column values on an entity.

        Args:
            id: Entity ID
            for_update: Lock the row before changing it
            **data: Column values

        Returns:
            Updated entity or None if not found
        """
        entity = (
            await self.get_for_update(id) if for_update else await self.get_by_id(id)
        )
        if entity is None:
            return None

        for key, value in data.items():
            setattr(entity, key, value)
        await self.session.flush()
        return entity

    async def delete(self, id: int) -> bool:
        """Delete by primary key. Returns False if nothing matched."""
        result = await self.session.execute(
            delete(self.model).where(self.model.id == id)
        )
        return result.rowcount > 0
