"""initial_follow_graph_schema

Revision ID: 3f1c9a7d2b60
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""

from collections.abc import Sequence
from typing import Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c9a7d2b60"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "app_user",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("follow_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("fans_count", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint("follow_count >= 0", name="ck_app_user_follow_count_non_negative"),
        sa.CheckConstraint("fans_count >= 0", name="ck_app_user_fans_count_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    # One row per directed edge; id is the listing/scan cursor
    op.create_table(
        "user_follow",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("subject_id", sa.BigInteger(), nullable=False),
        sa.Column("target_id", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.BigInteger(), nullable=False),
        sa.CheckConstraint("subject_id <> target_id", name="ck_user_follow_not_self"),
        sa.CheckConstraint(
            "status IN ('following', 'mutual')", name="ck_user_follow_status"
        ),
        sa.ForeignKeyConstraint(["subject_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "subject_id", "target_id", name="uq_user_follow_subject_target"
        ),
    )
    op.create_index(
        "ix_user_follow_subject_id_id", "user_follow", ["subject_id", "id"], unique=False
    )
    op.create_index(
        "ix_user_follow_target_id_id", "user_follow", ["target_id", "id"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_user_follow_target_id_id", table_name="user_follow")
    op.drop_index("ix_user_follow_subject_id_id", table_name="user_follow")
    op.drop_table("user_follow")
    op.drop_table("app_user")
