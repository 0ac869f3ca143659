"""Merge-patch persistence for video records.

Invariants:
- Patches never clobber untouched fields; JSON bags are merged key by key.
- Writes are guarded by ``Video.version``; a stale write is rejected by the
  database and the patch is re-read and re-applied, a bounded number of times.
- TIMEOUT/FAILED statuses are always written with an error and a timestamp.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_after_attempt, wait_random

from app.core.config import settings
from app.models.video import TranscriptionStatus, Video
from app.utils.datetime import Clock, isoformat_z, utcnow

logger = logging.getLogger("app.services.video_store")

MERGED_JSON_FIELDS = frozenset({"insights", "metadata", "content_metadata", "components"})
FIELD_ATTRIBUTES = {"metadata": "metadata_"}
WRITABLE_FIELDS = frozenset(
    {
        "url",
        "title",
        "platform",
        "thumbnail_url",
        "author",
        "duration",
        "transcript",
        "components",
        "transcription_status",
        "insights",
        "metadata",
        "content_metadata",
    }
)


class VideoNotFoundError(LookupError):
    """Raised when patching a video id that does not exist."""


class RecordConflictError(RuntimeError):
    """Raised when a patch keeps losing the optimistic concurrency race."""


def merge_patch(current: Mapping[str, Any] | None, patch: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``patch`` into a copy of ``current``."""
    merged = dict(current or {})
    for key, value in patch.items():
        existing = merged.get(key)
        if isinstance(value, Mapping) and isinstance(existing, Mapping):
            merged[key] = merge_patch(existing, value)
        else:
            merged[key] = value
    return merged


def build_failure_patch(status: TranscriptionStatus, message: str, now: datetime) -> dict[str, Any]:
    """Patch recording a terminal transcription failure with its reason and time."""
    if not status.is_terminal_failure:
        raise ValueError(f"{status.value} is not a failure status")
    return {
        "transcription_status": status,
        "metadata": {
            "transcriptionStatus": status.value,
            "transcriptionError": message or "Unknown error",
            "transcriptionFailedAt": isoformat_z(now),
        },
    }


class VideoRecordStore:
    """Read and merge-patch video records through an async session."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        clock: Clock = utcnow,
        max_attempts: int | None = None,
    ) -> None:
        self.session = session
        self._clock = clock
        self._max_attempts = max_attempts or settings.record_patch_max_attempts

    async def get(self, video_id: str) -> Video | None:
        return await self.session.get(Video, video_id)

    async def patch(self, video_id: str, fields: Mapping[str, Any]) -> Video:
        """Merge ``fields`` into the stored record and commit."""
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported video fields: {', '.join(sorted(unknown))}")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_random(0, 0.05),
                retry=retry_if_exception_type(StaleDataError),
            ):
                with attempt:
                    return await self._apply(video_id, fields)
        except RetryError as exc:
            logger.warning("Giving up on video %s after %s stale writes", video_id, self._max_attempts)
            raise RecordConflictError(f"Video {video_id} changed concurrently") from exc
        raise RecordConflictError(f"Video {video_id} could not be patched")

    async def _apply(self, video_id: str, fields: Mapping[str, Any]) -> Video:
        video = await self.session.get(Video, video_id, populate_existing=True)
        if video is None:
            raise VideoNotFoundError(video_id)
        for name, value in fields.items():
            attribute = FIELD_ATTRIBUTES.get(name, name)
            if name in MERGED_JSON_FIELDS and isinstance(value, Mapping):
                value = merge_patch(getattr(video, attribute), value)
            setattr(video, attribute, value)
        video.updated_at = self._clock()
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        return video
