"""Collection endpoints: create collections and import videos into them."""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_enrichment_orchestrator
from app.core.config import settings
from app.enrichment.media_urls import SuppliedUrls
from app.enrichment.merge import VideoAttributes
from app.models.video import Collection
from app.schema.video import AddVideoRequest, AddVideoResponse, CollectionCreate, CollectionRead, VideoRead
from app.services import collection_service
from app.services.enrichment_service import EnrichmentOrchestrator

router = APIRouter()


@router.post("", response_model=CollectionRead, status_code=status.HTTP_201_CREATED)
async def create_collection_endpoint(
    payload: CollectionCreate, session: AsyncSession = Depends(get_db)
) -> Collection:
    """Create an empty collection."""
    return await collection_service.create_collection(session, payload)


@router.get("/{collection_id}", response_model=CollectionRead)
async def get_collection_endpoint(collection_id: str, session: AsyncSession = Depends(get_db)) -> Collection:
    return await collection_service.get_collection(session, collection_id)


@router.post("/{collection_id}/videos", response_model=AddVideoResponse, status_code=status.HTTP_201_CREATED)
async def add_video_endpoint(
    collection_id: str,
    payload: AddVideoRequest,
    session: AsyncSession = Depends(get_db),
    orchestrator: EnrichmentOrchestrator = Depends(get_enrichment_orchestrator),
) -> AddVideoResponse:
    """Import a video, enrich it and hand it to transcription.

    The video is returned even when enrichment fails; its transcription status
    tells the client what happened.
    """
    started = time.monotonic()
    collection = await collection_service.get_collection(session, collection_id)
    video = await collection_service.add_video_to_collection(session, collection, payload)
    remaining = settings.import_request_timeout_seconds - (time.monotonic() - started)
    attributes = await orchestrator.enrich_and_dispatch(
        video.id,
        video.original_url,
        video.platform,
        VideoAttributes.from_video(video),
        supplied=SuppliedUrls(
            download_url=payload.download_url,
            video_url=payload.video_url,
            original_url=video.original_url,
        ),
        deadline_seconds=remaining,
    )
    video = await collection_service.get_video(session, video.id)
    return AddVideoResponse(
        video=VideoRead.model_validate(video),
        transcription_status=attributes.transcription_status,
    )
