"""Create character tracking tables

Revision ID: 4f1c2a9d7e30
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "4f1c2a9d7e30"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "characters",
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("esi_access_token", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "character_statuses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("character_id", sa.BigInteger(), nullable=False),
        sa.Column("solarsystem_id", sa.BigInteger(), nullable=True),
        sa.Column("station_id", sa.BigInteger(), nullable=True),
        sa.Column("structure_id", sa.BigInteger(), nullable=True),
        sa.Column("ship_name", sa.String(length=255), nullable=True),
        sa.Column("ship_type_id", sa.BigInteger(), nullable=True),
        sa.Column("ship_item_id", sa.BigInteger(), nullable=True),
        sa.Column("event_queued_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["character_id"], ["characters.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("character_id"),
    )
    op.create_index(
        "idx_character_statuses_event_queued",
        "character_statuses",
        ["event_queued_at"],
        unique=False,
    )

    op.create_table(
        "ship_histories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("character_id", sa.BigInteger(), nullable=False),
        sa.Column("ship_item_id", sa.BigInteger(), nullable=False),
        sa.Column("ship_type_id", sa.BigInteger(), nullable=False),
        sa.Column("ship_name", sa.String(length=255), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["character_id"], ["characters.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_ship_histories_character_last_seen",
        "ship_histories",
        ["character_id", "last_seen_at"],
        unique=False,
    )

    op.create_table(
        "task_locks",
        sa.Column("key", sa.String(length=200), nullable=False),
        sa.Column("owner", sa.String(length=64), nullable=False),
        sa.Column("acquired_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade() -> None:
    op.drop_table("task_locks")
    op.drop_index("idx_ship_histories_character_last_seen", table_name="ship_histories")
    op.drop_table("ship_histories")
    op.drop_index("idx_character_statuses_event_queued", table_name="character_statuses")
    op.drop_table("character_statuses")
    op.drop_table("characters")
