"""Worker-side transcription: call the transcription service and record the outcome."""

from __future__ import annotations

import logging
import re

from sqlalchemy.ext.asyncio import AsyncSession

from app.enrichment.errors import is_timeout_like
from app.ingestion import get_transcription_client
from app.ingestion.http import ExternalAPIError
from app.ingestion.transcriber import TranscriptionClient
from app.models.video import TranscriptionStatus
from app.services.video_store import VideoRecordStore, build_failure_patch
from app.utils.datetime import Clock, isoformat_z, utcnow
from app.utils.redaction import redact_media_url

logger = logging.getLogger("app.services.transcription")

MISSING_SOURCE_MESSAGE = "No source URL available for transcription"
COMPONENT_KEYS = ("hook", "bridge", "nugget", "wta")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def split_components(transcript: str) -> dict[str, str]:
    """Split a transcript into four roughly equal sentence groups."""
    cleaned = " ".join(transcript.split())
    if not cleaned:
        return {key: "" for key in COMPONENT_KEYS}
    sentences = [sentence for sentence in _SENTENCE_SPLIT_RE.split(cleaned) if sentence]
    size = max(1, -(-len(sentences) // 4))
    hook = " ".join(sentences[:size])
    bridge = " ".join(sentences[size : size * 2])
    nugget = " ".join(sentences[size * 2 : size * 3])
    wta = " ".join(sentences[size * 3 :]) or " ".join(sentences[-size:])
    return {"hook": hook, "bridge": bridge, "nugget": nugget, "wta": wta}


async def process_transcription(
    session: AsyncSession,
    *,
    video_id: str,
    source_url: str | None,
    platform: str | None,
    client: TranscriptionClient | None = None,
    clock: Clock = utcnow,
) -> TranscriptionStatus:
    """Transcribe one video and persist COMPLETED, TIMEOUT or FAILED."""
    store = VideoRecordStore(session, clock=clock)
    await store.patch(
        video_id,
        {
            "transcription_status": TranscriptionStatus.PROCESSING,
            "metadata": {
                "transcriptionStatus": TranscriptionStatus.PROCESSING.value,
                "transcriptionQueuedAt": isoformat_z(clock()),
                "transcriptionError": None,
            },
        },
    )

    if not source_url:
        await store.patch(video_id, build_failure_patch(TranscriptionStatus.FAILED, MISSING_SOURCE_MESSAGE, clock()))
        return TranscriptionStatus.FAILED

    client = client or get_transcription_client()
    try:
        result = await client.transcribe(source_url, platform or "other")
    except ExternalAPIError as exc:
        status = TranscriptionStatus.TIMEOUT if is_timeout_like(exc) else TranscriptionStatus.FAILED
        logger.warning(
            "Transcription %s for %s (%s): %s", status.value, video_id, redact_media_url(source_url), exc
        )
        await store.patch(video_id, build_failure_patch(status, str(exc), clock()))
        return status

    components = result.components or split_components(result.transcript)
    completed_at = isoformat_z(clock())
    await store.patch(
        video_id,
        {
            "transcript": result.transcript,
            "components": components,
            "transcription_status": TranscriptionStatus.COMPLETED,
            "content_metadata": result.content_metadata,
            "metadata": {
                "transcriptionStatus": TranscriptionStatus.COMPLETED.value,
                "transcriptionCompletedAt": completed_at,
                "transcriptionMetadata": result.details,
                "transcriptionSourceUrl": source_url,
                "transcriptionError": None,
            },
        },
    )
    logger.info("Transcription completed for %s (%s chars)", video_id, len(result.transcript))
    return TranscriptionStatus.COMPLETED
