"""initial_schema

Revision ID: 3f1c9a2e7b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the crop configuration table, the two append-only event logs read
by the once-per-day guard, and the notification preference table.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f1c9a2e7b40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_CROP_NAME = postgresql.ENUM(
    "tomato",
    "lettuce",
    "maize",
    "onion",
    "chili_pepper",
    "eggplant",
    "carrot",
    "bean",
    name="crop_name",
    create_type=False,
)
ENUM_SOIL_CLASS = postgresql.ENUM(
    "sandy",
    "clay",
    "loamy",
    "ferruginous",
    "alluvial",
    name="soil_class",
    create_type=False,
)
ENUM_NOTIFICATION_KIND = postgresql.ENUM(
    "daily_recommendation",
    "irrigation_reminder",
    "weather_alert",
    name="notification_kind",
    create_type=False,
)


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. Create enum types ────────────────────────────────────────────
    ENUM_CROP_NAME.create(op.get_bind(), checkfirst=True)
    ENUM_SOIL_CLASS.create(op.get_bind(), checkfirst=True)
    ENUM_NOTIFICATION_KIND.create(op.get_bind(), checkfirst=True)

    # ── 2. Crop configuration ───────────────────────────────────────────
    op.create_table(
        "crops",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("name", ENUM_CROP_NAME, nullable=False),
        sa.Column("soil_class", ENUM_SOIL_CLASS, nullable=False),
        sa.Column("planting_date", sa.Date(), nullable=False),
        sa.Column("area_m2", sa.Float(), nullable=False),
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
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_crops_user_id", "crops", ["user_id"])

    # ── 3. Event logs ───────────────────────────────────────────────────
    op.create_table(
        "irrigation_events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("crop_name", ENUM_CROP_NAME, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("volume_l_m2", sa.Float(), nullable=False),
        sa.Column("total_volume_l", sa.Float(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_irrigation_events_user_ts",
        "irrigation_events",
        ["user_id", "timestamp"],
    )

    op.create_table(
        "notification_events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("kind", ENUM_NOTIFICATION_KIND, nullable=False),
        sa.Column("discriminator", sa.String(64), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("message", sa.String(1024), nullable=False),
        sa.Column(
            "recorded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_notification_events_user_ts",
        "notification_events",
        ["user_id", "sent_at"],
    )

    # ── 4. Preferences ──────────────────────────────────────────────────
    op.create_table(
        "notification_preferences",
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("daily", sa.Boolean(), nullable=False),
        sa.Column("weather", sa.Boolean(), nullable=False),
        sa.Column("irrigation", sa.Boolean(), nullable=False),
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
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("notification_preferences")
    op.drop_index("ix_notification_events_user_ts", table_name="notification_events")
    op.drop_table("notification_events")
    op.drop_index("ix_irrigation_events_user_ts", table_name="irrigation_events")
    op.drop_table("irrigation_events")
    op.drop_index("ix_crops_user_id", table_name="crops")
    op.drop_table("crops")

    ENUM_NOTIFICATION_KIND.drop(op.get_bind(), checkfirst=True)
    ENUM_SOIL_CLASS.drop(op.get_bind(), checkfirst=True)
    ENUM_CROP_NAME.drop(op.get_bind(), checkfirst=True)
