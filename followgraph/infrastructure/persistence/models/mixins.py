"""SQLAlchemy mixins for common model patterns (DRY).

Provides: BigIntIdMixin and TimestampMixin.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

# BIGINT on server databases; INTEGER on SQLite so the rowid autoincrements.
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


class BigIntIdMixin:
    """Mixin for models keyed by an autoincrement integer id (monotonic, never reused)."""

    @declared_attr
    def id(cls) -> Mapped[int]:
        return mapped_column(BigIntId, primary_key=True, autoincrement=True)


class TimestampMixin:
    """Mixin for created_at and updated_at (server defaults, timezone-aware)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
