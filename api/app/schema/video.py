"""Collection and video schemas for request/response payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

from app.models.video import TranscriptionStatus
from app.schema.base import ORMModel, Timestamped


class CollectionCreate(BaseModel):
    """Payload for creating a collection."""
    user_id: str = Field(min_length=1, max_length=128)
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None


class CollectionRead(Timestamped):
    """Collection representation returned by the API."""
    user_id: str
    title: str
    description: str | None = None
    video_count: int


class AddVideoRequest(BaseModel):
    """Payload for importing a video into a collection.

    ``download_url`` and ``video_url`` are direct media links the client may
    already hold; they are used only when scraping fails.
    """
    url: str
    user_id: str | None = None
    title: str | None = None
    thumbnail_url: str | None = None
    download_url: str | None = None
    video_url: str | None = None


class VideoRead(Timestamped):
    """Video representation, including transcription progress."""
    collection_id: str | None = None
    user_id: str
    original_url: str
    url: str
    platform: str
    title: str
    thumbnail_url: str | None = None
    author: str | None = None
    duration: float = 0
    transcript: str | None = None
    components: dict[str, Any] | None = None
    transcription_status: TranscriptionStatus
    insights: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("metadata_", "metadata")
    )
    content_metadata: dict[str, Any] = Field(default_factory=dict)
    added_at: datetime


class AddVideoResponse(ORMModel):
    """Result of an import: the video as enrichment left it."""
    success: bool = True
    video: VideoRead
    transcription_status: TranscriptionStatus
