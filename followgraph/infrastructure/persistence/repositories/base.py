"""Base repository: generic CRUD and QueryCriteria translation."""

from typing import Any, Generic, TypeVar

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from followgraph.application.dtos.query import Operator, QueryCriteria
from followgraph.domain.exceptions import ValidationException
from followgraph.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with get_by_id, find, count, create, by-id update and delete.

    Bound to one AsyncSession. Nothing here commits: the caller owns the
    transaction (session.begin()) and every statement joins it.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    def _column(self, name: str) -> InstrumentedAttribute:
        """Resolve a mapped column by name; raise ValidationException if unknown."""
        if name not in self.model.__table__.columns:
            raise ValidationException(
                f"Unknown column '{name}' for {self.model.__name__}", field=name
            )
        return getattr(self.model, name)

    def _apply_conditions(self, stmt: Select, criteria: QueryCriteria) -> Select:
        for cond in criteria.conditions:
            col = self._column(cond.column)
            if cond.op is Operator.EQ:
                stmt = stmt.where(col == cond.value)
            elif cond.op is Operator.NE:
                stmt = stmt.where(col != cond.value)
            elif cond.op is Operator.LT:
                stmt = stmt.where(col < cond.value)
            elif cond.op is Operator.LTE:
                stmt = stmt.where(col <= cond.value)
            elif cond.op is Operator.GT:
                stmt = stmt.where(col > cond.value)
            elif cond.op is Operator.GTE:
                stmt = stmt.where(col >= cond.value)
            elif cond.op is Operator.IN:
                stmt = stmt.where(col.in_(cond.value))
        return stmt

    def _build_select(self, criteria: QueryCriteria) -> Select:
        """SELECT with conditions, ordering, limit and offset from criteria."""
        stmt = self._apply_conditions(
            select(self.model).execution_options(populate_existing=True), criteria
        )
        for order in criteria.orders:
            col = self._column(order.column)
            stmt = stmt.order_by(col.desc() if order.descending else col.asc())
        if criteria.offset_value:
            stmt = stmt.offset(criteria.offset_value)
        if criteria.limit_value is not None:
            stmt = stmt.limit(criteria.limit_value)
        return stmt

    async def get_by_id(self, entity_id: int) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        result = await self.db.execute(
            select(self.model)
            .where(model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_models(self, criteria: QueryCriteria) -> list[ModelType]:
        """Return ORM records matching criteria."""
        result = await self.db.execute(self._build_select(criteria))
        return list(result.scalars().all())

    async def count(self, criteria: QueryCriteria) -> int:
        """Return number of records matching criteria (ordering and paging ignored)."""
        stmt = self._apply_conditions(
            select(func.count()).select_from(self.model), criteria
        )
        result = await self.db.execute(stmt)
        return int(result.scalar_one())

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record (flush assigns the id)."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def update_columns(self, entity_id: int, columns: dict[str, Any]) -> bool:
        """UPDATE columns on the row with entity_id; return True if a row matched."""
        if not columns:
            return False
        for name in columns:
            self._column(name)
        model: Any = self.model
        result = await self.db.execute(
            update(self.model)
            .where(model.id == entity_id)
            .values(**columns)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def delete_by_id(self, entity_id: int) -> bool:
        """DELETE the row with entity_id; return True if a row was removed."""
        model: Any = self.model
        result = await self.db.execute(
            delete(self.model)
            .where(model.id == entity_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0
