"""Collection and video records, including transcription bookkeeping."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base_class import Base
from app.utils.datetime import utcnow

JSON_COMPATIBLE = JSON().with_variant(JSONB, "postgresql")


def _new_id() -> str:
    return uuid.uuid4().hex


class Platform(str, enum.Enum):
    """Known source platforms; stored as plain strings so the set stays open."""
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    OTHER = "other"


class TranscriptionStatus(str, enum.Enum):
    """Lifecycle of a video's transcription.

    The enrichment orchestrator writes PROCESSING, TIMEOUT and FAILED; only the
    transcription job writes COMPLETED.
    """
    UNSET = "unset"
    PROCESSING = "processing"
    TIMEOUT = "timeout"
    FAILED = "failed"
    COMPLETED = "completed"

    @property
    def is_terminal_failure(self) -> bool:
        return self in (TranscriptionStatus.TIMEOUT, TranscriptionStatus.FAILED)


class Collection(Base):
    """A user's named group of videos."""
    __tablename__ = "collections"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    video_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    videos: Mapped[list["Video"]] = relationship(back_populates="collection")


class Video(Base):
    """Imported video and its enrichment/transcription state."""
    __tablename__ = "videos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    collection_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("collections.id", ondelete="SET NULL"), index=True
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    original_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    url: Mapped[str] = mapped_column(String(4096), nullable=False)
    platform: Mapped[str] = mapped_column(String(32), nullable=False, default=Platform.OTHER.value)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String(4096))
    author: Mapped[str | None] = mapped_column(String(255))
    duration: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    transcript: Mapped[str | None] = mapped_column(Text)
    components: Mapped[dict | None] = mapped_column(JSON_COMPATIBLE)
    # Persist the enum values (lowercase) instead of names so they match the DB enum
    transcription_status: Mapped[TranscriptionStatus] = mapped_column(
        Enum(
            TranscriptionStatus,
            name="transcription_status",
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
        ),
        nullable=False,
        default=TranscriptionStatus.UNSET,
        index=True,
    )
    insights: Mapped[dict] = mapped_column(JSON_COMPATIBLE, nullable=False, default=dict)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON_COMPATIBLE, nullable=False, default=dict)
    content_metadata: Mapped[dict] = mapped_column(JSON_COMPATIBLE, nullable=False, default=dict)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    collection: Mapped[Collection | None] = relationship(back_populates="videos")

    # Every UPDATE is guarded by the version counter; concurrent writers get StaleDataError.
    __mapper_args__ = {"version_id_col": version}
