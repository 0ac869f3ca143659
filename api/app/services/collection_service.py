"""Collection CRUD and video import services."""

from __future__ import annotations

from urllib.parse import urlsplit

from fastapi import HTTPException, status
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.enrichment.media_urls import detect_platform
from app.models.video import Collection, TranscriptionStatus, Video
from app.schema.video import AddVideoRequest, CollectionCreate
from app.utils.datetime import utcnow

PLACEHOLDER_THUMBNAIL = "https://placehold.co/360x640?text=Video"
EMPTY_INSIGHTS = {"views": 0, "likes": 0, "comments": 0, "saves": 0}


def validate_video_url(url: str) -> str:
    """Return the trimmed URL or raise a 400 for anything but absolute http(s)."""
    candidate = (url or "").strip()
    try:
        parts = urlsplit(candidate)
    except ValueError:
        parts = None
    if not parts or parts.scheme not in ("http", "https") or not parts.netloc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid video URL")
    return candidate


async def create_collection(session: AsyncSession, payload: CollectionCreate) -> Collection:
    collection = Collection(
        user_id=payload.user_id,
        title=payload.title,
        description=payload.description,
        video_count=0,
    )
    session.add(collection)
    await session.commit()
    await session.refresh(collection)
    return collection


async def get_collection(session: AsyncSession, collection_id: str) -> Collection:
    """Fetch a collection by ID or raise a 404."""
    collection = await session.get(Collection, collection_id, populate_existing=True)
    if not collection:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")
    return collection


async def get_video(session: AsyncSession, video_id: str) -> Video:
    """Fetch the current state of a video, re-reading anything cached in the session."""
    video = await session.get(Video, video_id, populate_existing=True)
    if not video:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found")
    return video


async def add_video_to_collection(
    session: AsyncSession, collection: Collection, payload: AddVideoRequest
) -> Video:
    """Create an unenriched video record in a collection.

    The record starts with placeholder presentation fields derived from the URL;
    enrichment fills in the rest.
    """
    url = validate_video_url(payload.url)
    platform = detect_platform(url)
    metadata: dict[str, object] = {"source": "import", "originalUrl": url}
    if payload.download_url:
        metadata["downloadUrl"] = payload.download_url

    video = Video(
        collection_id=collection.id,
        user_id=payload.user_id or collection.user_id,
        original_url=url,
        url=url,
        platform=platform,
        title=payload.title or f"Video from {platform}",
        thumbnail_url=payload.thumbnail_url or PLACEHOLDER_THUMBNAIL,
        duration=0,
        transcription_status=TranscriptionStatus.UNSET,
        insights=dict(EMPTY_INSIGHTS),
        metadata_=metadata,
        content_metadata={},
    )
    session.add(video)
    await session.execute(
        update(Collection)
        .where(Collection.id == collection.id)
        .values(video_count=Collection.video_count + 1, updated_at=utcnow())
    )
    await session.commit()
    await session.refresh(video)
    return video
