"""collections and videos

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01.000000
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


transcription_status_enum = postgresql.ENUM(
    "unset",
    "processing",
    "timeout",
    "failed",
    "completed",
    name="transcription_status",
    create_type=False,
)


def upgrade() -> None:
    """Create collection/video tables and the transcription status enum."""
    transcription_status_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "collections",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("video_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
        ),
    )
    op.create_index("ix_collections_user_id", "collections", ["user_id"])

    op.create_table(
        "videos",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column(
            "collection_id",
            sa.String(length=64),
            sa.ForeignKey("collections.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("original_url", sa.String(length=2048), nullable=False),
        sa.Column("url", sa.String(length=4096), nullable=False),
        sa.Column("platform", sa.String(length=32), nullable=False, server_default="other"),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("thumbnail_url", sa.String(length=4096), nullable=True),
        sa.Column("author", sa.String(length=255), nullable=True),
        sa.Column("duration", sa.Float(), nullable=False, server_default="0"),
        sa.Column("transcript", sa.Text(), nullable=True),
        sa.Column("components", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "transcription_status",
            transcription_status_enum,
            nullable=False,
            server_default="unset",
        ),
        sa.Column("insights", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default="{}"),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default="{}"),
        sa.Column(
            "content_metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default="{}"
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("added_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
        ),
    )
    op.create_index("ix_videos_collection_id", "videos", ["collection_id"])
    op.create_index("ix_videos_user_id", "videos", ["user_id"])
    op.create_index("ix_videos_transcription_status", "videos", ["transcription_status"])


def downgrade() -> None:
    """Drop collection/video tables and the transcription status enum."""
    op.drop_index("ix_videos_transcription_status", table_name="videos")
    op.drop_index("ix_videos_user_id", table_name="videos")
    op.drop_index("ix_videos_collection_id", table_name="videos")
    op.drop_table("videos")
    op.drop_index("ix_collections_user_id", table_name="collections")
    op.drop_table("collections")
    transcription_status_enum.drop(op.get_bind(), checkfirst=True)
