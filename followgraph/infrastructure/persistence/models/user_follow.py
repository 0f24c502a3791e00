"""UserFollow ORM model. One row per directed follow edge (subject -> target)."""

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from followgraph.domain.enums import FollowStatus
from followgraph.infrastructure.persistence.database import Base
from followgraph.infrastructure.persistence.models.mixins import BigIntIdMixin


class UserFollow(BigIntIdMixin, Base):
    """Follow edge. Table: user_follow.

    Unique (subject_id, target_id); the row's existence is the edge. status is
    'mutual' on both directions when the reverse edge exists. id doubles as
    the cursor for fans/follows listing and scans.
    """

    __tablename__ = "user_follow"

    subject_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=FollowStatus.FOLLOWING.value
    )
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "subject_id", "target_id", name="uq_user_follow_subject_target"
        ),
        CheckConstraint("subject_id <> target_id", name="ck_user_follow_not_self"),
        CheckConstraint(
            "status IN ('following', 'mutual')", name="ck_user_follow_status"
        ),
        Index("ix_user_follow_subject_id_id", "subject_id", "id"),
        Index("ix_user_follow_target_id_id", "target_id", "id"),
    )
