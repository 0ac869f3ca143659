"""Fire-and-forget dispatch of transcription work."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.config import settings
from app.services.task_queue import TaskQueue, task_queue
from app.utils.redaction import redact_media_url

logger = logging.getLogger("app.services.transcription_dispatcher")


@dataclass(frozen=True, slots=True)
class TranscriptionDispatchRequest:
    """One-way message asking the pipeline to transcribe a video."""
    video_id: str
    source_url: str
    platform: str


class BaseTranscriptionDispatcher:
    """Interface for sending transcription requests.

    ``enqueue`` only confirms the request was accepted; it never waits for the
    transcription itself. Raising means the enqueue failed.
    """

    async def enqueue(self, request: TranscriptionDispatchRequest) -> str | None:
        raise NotImplementedError


class QueueTranscriptionDispatcher(BaseTranscriptionDispatcher):
    """Dispatch onto the RQ transcription queue, or in-process when Redis is down."""

    def __init__(self, queue: TaskQueue | None = None) -> None:
        self.queue = queue or task_queue

    async def enqueue(self, request: TranscriptionDispatchRequest) -> str | None:
        from app.jobs.transcription import run_transcription, run_transcription_job

        async def _in_process() -> None:
            await run_transcription(
                video_id=request.video_id,
                source_url=request.source_url,
                platform=request.platform,
            )

        job_id = await self.queue.enqueue_nowait(
            run_transcription_job,
            fallback=_in_process,
            queue_name=settings.transcription_queue_name,
            timeout_seconds=settings.transcription_job_timeout_seconds,
            description=f"transcribe:{request.video_id}",
            video_id=request.video_id,
            source_url=request.source_url,
            platform=request.platform,
        )
        logger.info(
            "Dispatched transcription for %s from %s (job=%s)",
            request.video_id,
            redact_media_url(request.source_url),
            job_id or "in-process",
        )
        return job_id
