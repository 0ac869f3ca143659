from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db
from app.models.video import Video
from app.schema.video import VideoRead
from app.services import collection_service

router = APIRouter()


@router.get("/{video_id}", response_model=VideoRead)
async def get_video_endpoint(video_id: str, session: AsyncSession = Depends(get_db)) -> Video:
    """Return the current record, used to poll transcription progress."""
    return await collection_service.get_video(session, video_id)
