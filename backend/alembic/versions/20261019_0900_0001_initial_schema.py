"""Initial PocketRot schema: lore, characters, scenarios, images, videos

Revision ID: 0001
Revises: None
Create Date: 2026-10-19 09:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TABLE_OPTS = {"mysql_charset": "utf8mb4", "mysql_collate": "utf8mb4_unicode_ci"}


def upgrade() -> None:
    op.create_table(
        "lore",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        **_TABLE_OPTS,
    )
    op.create_index("ix_lore_category", "lore", ["category"])

    op.create_table(
        "characters",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("species", sa.String(100), nullable=False),
        sa.Column("pocket_artifact", sa.String(255), nullable=False),
        sa.Column("role_and_vibe", sa.Text, nullable=False),
        sa.Column("backstory", sa.Text, nullable=True),
        sa.Column("is_original", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("generated_by", sa.String(50), nullable=False, server_default="manual"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        **_TABLE_OPTS,
    )

    op.create_table(
        "scenarios",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("character_ids", sa.JSON, nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("mission", sa.Text, nullable=True),
        sa.Column("generated_by", sa.String(50), nullable=False, server_default="gemini"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        **_TABLE_OPTS,
    )

    op.create_table(
        "images",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("scenario_id", sa.Integer, sa.ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=True),
        sa.Column("character_id", sa.Integer, sa.ForeignKey("characters.id", ondelete="CASCADE"), nullable=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("prompt", sa.Text, nullable=True),
        sa.Column("generated_by", sa.String(50), nullable=False, server_default="gemini"),
        sa.Column("approved", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        **_TABLE_OPTS,
    )
    op.create_index("ix_images_scenario_id", "images", ["scenario_id"])
    op.create_index("ix_images_character_id", "images", ["character_id"])

    op.create_table(
        "videos",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("scenario_id", sa.Integer, sa.ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("prompt", sa.Text, nullable=True),
        sa.Column("duration", sa.Integer, nullable=True),
        sa.Column("generated_by", sa.String(50), nullable=False, server_default="gemini"),
        sa.Column("youtube_id", sa.String(100), nullable=True),
        sa.Column("youtube_url", sa.String(500), nullable=True),
        sa.Column("upload_status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("uploaded_at", sa.DateTime, nullable=True),
        sa.Column("upload_error", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        **_TABLE_OPTS,
    )
    op.create_index("ix_videos_scenario_id", "videos", ["scenario_id"])


def downgrade() -> None:
    op.drop_table("videos")
    op.drop_table("images")
    op.drop_table("scenarios")
    op.drop_table("characters")
    op.drop_table("lore")
