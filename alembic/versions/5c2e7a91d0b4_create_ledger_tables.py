"""Create gathers, report_subscribers, settings and admin_log tables

Revision ID: 5c2e7a91d0b4
Revises:
Create Date: 2026-10-19 09:12:31.448201

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e7a91d0b4'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- gathers ---
    op.create_table(
        "gathers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ts", sa.BigInteger, nullable=False),
        sa.Column("channel_id", sa.String(32), nullable=False),
        sa.Column("message_id", sa.String(32), nullable=False),
        sa.Column("discord_id", sa.String(32), nullable=True),
        sa.Column("ranch_id", sa.Integer, nullable=True),
        sa.Column("item_type", sa.String(16), nullable=False),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("value", sa.Float, nullable=False, server_default="0"),
        sa.Column("subtype", sa.String(64), nullable=True),
    )
    op.create_index("ix_gathers_message_id", "gathers", ["message_id"], unique=True)
    op.create_index("ix_gathers_ts", "gathers", ["ts"])
    op.create_index("ix_gathers_user", "gathers", ["discord_id"])
    op.create_index("ix_gathers_ranch", "gathers", ["ranch_id"])

    # --- report_subscribers ---
    op.create_table(
        "report_subscribers",
        sa.Column("discord_id", sa.String(32), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # --- settings ---
    op.create_table(
        "settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value_json", sa.Text, nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_settings_category", "settings", ["category"])

    # --- admin_log ---
    op.create_table(
        "admin_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.BigInteger, nullable=False),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("target_table", sa.String(50), nullable=False),
        sa.Column("target_id", sa.String(100), nullable=True),
        sa.Column("before_snapshot", postgresql.JSONB, nullable=True),
        sa.Column("after_snapshot", postgresql.JSONB, nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_admin_log_actor_time", "admin_log", ["actor_id", "timestamp"])
    op.create_index(
        "ix_admin_log_target", "admin_log", ["target_table", "target_id", "timestamp"],
    )


def downgrade() -> None:
    op.drop_index("ix_admin_log_target", table_name="admin_log")
    op.drop_index("ix_admin_log_actor_time", table_name="admin_log")
    op.drop_table("admin_log")
    op.drop_index("ix_settings_category", table_name="settings")
    op.drop_table("settings")
    op.drop_table("report_subscribers")
    op.drop_index("ix_gathers_ranch", table_name="gathers")
    op.drop_index("ix_gathers_user", table_name="gathers")
    op.drop_index("ix_gathers_ts", table_name="gathers")
    op.drop_index("ix_gathers_message_id", table_name="gathers")
    op.drop_table("gathers")
