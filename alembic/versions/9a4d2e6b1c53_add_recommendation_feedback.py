"""add_recommendation_feedback

Revision ID: 9a4d2e6b1c53
Revises: 3f1c9a2e7b40
Create Date: 2026-10-18 12:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "9a4d2e6b1c53"
down_revision: str | None = "3f1c9a2e7b40"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# Created by the initial revision.
ENUM_CROP_NAME = postgresql.ENUM(name="crop_name", create_type=False)


def upgrade() -> None:
    op.create_table(
        "recommendation_feedback",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("crop_name", ENUM_CROP_NAME, nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("volume_l_m2", sa.Float(), nullable=False),
        sa.Column("is_good", sa.Boolean(), nullable=False),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_recommendation_feedback_user_day",
        "recommendation_feedback",
        ["user_id", "day"],
    )


def downgrade() -> None:
    op.drop_index("ix_recommendation_feedback_user_day", table_name="recommendation_feedback")
    op.drop_table("recommendation_feedback")
