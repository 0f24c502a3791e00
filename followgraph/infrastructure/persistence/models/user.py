"""User ORM model. Only the follow counters matter to the follow graph."""

from sqlalchemy import CheckConstraint, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from followgraph.infrastructure.persistence.database import Base
from followgraph.infrastructure.persistence.models.mixins import (
    BigIntIdMixin,
    TimestampMixin,
)


class User(BigIntIdMixin, TimestampMixin, Base):
    """User model. Table: app_user. Unique username; counters never negative."""

    __tablename__ = "app_user"

    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    follow_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    fans_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    __table_args__ = (
        CheckConstraint("follow_count >= 0", name="ck_app_user_follow_count_non_negative"),
        CheckConstraint("fans_count >= 0", name="ck_app_user_fans_count_non_negative"),
    )
