from __future__ import annotations

import asyncio
import logging
from typing import Any

from app.db.session import async_session
from app.services import transcription_service

logger = logging.getLogger("app.jobs.transcription")


async def run_transcription(*, video_id: str, source_url: str | None, platform: str | None) -> dict[str, Any]:
    async with async_session() as session:
        status = await transcription_service.process_transcription(
            session, video_id=video_id, source_url=source_url, platform=platform
        )
    return {"video_id": video_id, "status": status.value}


def run_transcription_job(*, video_id: str, source_url: str | None, platform: str | None) -> dict[str, Any]:
    """Enqueue-able transcription job."""
    summary = asyncio.run(run_transcription(video_id=video_id, source_url=source_url, platform=platform))
    logger.info("Transcription job finished for %s (%s)", video_id, summary["status"])
    return summary
