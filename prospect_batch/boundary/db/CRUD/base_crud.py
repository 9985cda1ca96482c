"""
Base CRUD operations for SQLAlchemy models.

Besides plain create, provides the two primitives the batch engine is
built on: a guarded UPDATE ... RETURNING that only touches rows
still matching the caller's criteria, and a filtered count.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_batch.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base

    Attributes:
        model: The SQLAlchemy model class to operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Add a record and flush so server defaults (id, timestamps) load.

        Args:
            session: Async database session
            **kwargs: Model field values

        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def guarded_update(
        self,
        session: AsyncSession,
        *criteria: ColumnElement[bool],
        values: dict[str, Any],
    ) -> ModelT | None:
        """
        Update the single row matching every criterion and return it.

        The criteria are evaluated by the database in the same statement as
        the write, so two callers racing on the same expected state cannot
        both get a row back. Identity-map copies are refreshed from the
        returned row.

        Args:
            session: Async database session
            *criteria: WHERE clauses, normally the id plus the expected state
            values: Columns to set (SQL expressions allowed)

        Returns:
            The updated row, or None if nothing matched
        """
        stmt = (
            update(self.model)
            .where(*criteria)
            .values(**values)
            .returning(self.model)
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_where(self, session: AsyncSession, *criteria: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        return (await session.execute(stmt)).scalar_one()
