"""Enrichment and transcription dispatch for newly imported videos.

One scrape attempt decides the record's fate:

    unenriched --scrape ok--------------------------> processing (dispatched)
               --scrape timed out-------------------> timeout
               --other error / success=False--+---> dispatched from a CDN URL
                                               +---> failed

Invariants:
- ``enrich_and_dispatch`` never raises for scrape, store or dispatch
  failures; outcomes are recorded on the returned attributes and the record.
- PROCESSING is only persisted on the path that dispatches.
- TIMEOUT and FAILED are persisted with an error message and a timestamp.
- Exactly one scrape call and at most one dispatch per invocation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.enrichment.errors import ScrapeError, ScrapeErrorKind, classify_scrape_error
from app.enrichment.media_urls import SuppliedUrls, build_fallback_candidates, select_fallback_url
from app.enrichment.merge import VideoAttributes, merge_scrape_result
from app.ingestion import get_scraper
from app.ingestion.base import BaseScraper, ScrapeOptions, ScrapeResult
from app.ingestion.observability import ScrapeMonitor, scrape_monitor
from app.models.video import Platform, TranscriptionStatus
from app.services.transcription_dispatcher import (
    BaseTranscriptionDispatcher,
    QueueTranscriptionDispatcher,
    TranscriptionDispatchRequest,
)
from app.services.video_store import RecordConflictError, VideoNotFoundError, VideoRecordStore, build_failure_patch
from app.utils.datetime import Clock, utcnow
from app.utils.redaction import redact_media_url

logger = logging.getLogger("app.services.enrichment")

FALLBACK_FAILURE_MESSAGE = "Download URL unavailable after scrape failure"


class EnrichmentOrchestrator:
    """Drive one enrichment attempt for a video record."""

    def __init__(
        self,
        *,
        scraper: BaseScraper,
        dispatcher: BaseTranscriptionDispatcher,
        store: VideoRecordStore,
        monitor: ScrapeMonitor | None = None,
        clock: Clock = utcnow,
        scrape_timeout_seconds: float | None = None,
        timeout_falls_back_to_cdn: bool | None = None,
    ) -> None:
        self.scraper = scraper
        self.dispatcher = dispatcher
        self.store = store
        self.monitor = monitor or scrape_monitor
        self._clock = clock
        self._scrape_timeout = scrape_timeout_seconds or settings.scrape_timeout_seconds
        self._timeout_falls_back = (
            settings.scrape_timeout_falls_back_to_cdn
            if timeout_falls_back_to_cdn is None
            else timeout_falls_back_to_cdn
        )

    async def enrich_and_dispatch(
        self,
        video_id: str,
        source_url: str,
        platform: str | None,
        prior: VideoAttributes,
        *,
        supplied: SuppliedUrls | None = None,
        deadline_seconds: float | None = None,
    ) -> VideoAttributes:
        """Scrape, merge, dispatch and record the outcome for one video.

        ``deadline_seconds`` is the caller's remaining time budget; the scrape
        runs under the smaller of it and the configured scrape timeout.
        """
        best_platform = prior.platform or platform or Platform.OTHER.value
        result, error = await self._scrape(video_id, source_url, best_platform, deadline_seconds)

        if result is not None and result.success:
            merged, updates = merge_scrape_result(prior, result, self._clock(), original_url=source_url)
            await self._persist(video_id, updates)
            await self._dispatch(
                video_id,
                result.download_url or result.video_url or prior.url or source_url,
                result.platform or prior.platform or platform or Platform.OTHER.value,
            )
            return merged

        attributes = prior
        dispatched = False
        if error is not None and error.kind is ScrapeErrorKind.TIMEOUT:
            attributes = await self._record_failure(video_id, attributes, TranscriptionStatus.TIMEOUT, error.message)
            # Historical behavior: the record counts as handled although nothing was queued.
            dispatched = not self._timeout_falls_back
        elif error is not None:
            logger.warning(
                "Scrape failed for %s (%s): %s; trying direct media URLs",
                video_id,
                error.kind.value,
                error.message,
            )
        else:
            logger.info(
                "Scrape reported no result for %s: %s; trying direct media URLs",
                video_id,
                (result.error if result else None) or "success=false",
            )

        if dispatched:
            return attributes

        candidates = build_fallback_candidates(
            record_url=attributes.url,
            record_metadata=attributes.metadata,
            supplied=supplied,
        )
        fallback_url, found = select_fallback_url(candidates)
        if found:
            await self._dispatch(video_id, fallback_url, best_platform)
            return attributes
        return await self._record_failure(video_id, attributes, TranscriptionStatus.FAILED, FALLBACK_FAILURE_MESSAGE)

    def _timeout_for(self, deadline_seconds: float | None) -> float:
        if deadline_seconds is None:
            return self._scrape_timeout
        return max(0.0, min(self._scrape_timeout, deadline_seconds))

    async def _scrape(
        self,
        video_id: str,
        source_url: str,
        platform: str,
        deadline_seconds: float | None,
    ) -> tuple[ScrapeResult | None, ScrapeError | None]:
        timeout = self._timeout_for(deadline_seconds)

        async def _call() -> ScrapeResult:
            try:
                return await asyncio.wait_for(
                    self.scraper.scrape(source_url, ScrapeOptions(timeout_seconds=timeout or None)),
                    timeout=timeout,
                )
            except asyncio.TimeoutError as exc:
                raise TimeoutError(f"Scrape timed out after {timeout:g}s") from exc

        try:
            result = await self.monitor.track(
                platform,
                "scrape",
                _call,
                context={"video_id": video_id, "url": redact_media_url(source_url)},
                classify=lambda exc: classify_scrape_error(exc).kind.value,
            )
        except Exception as exc:  # noqa: BLE001
            return None, classify_scrape_error(exc)
        return result, None

    async def _dispatch(self, video_id: str, source_url: str, platform: str) -> bool:
        request = TranscriptionDispatchRequest(video_id=video_id, source_url=source_url, platform=platform)
        try:
            await self.dispatcher.enqueue(request)
        except Exception:  # noqa: BLE001
            # The persisted status is left as-is; the enqueue failure is only visible in logs.
            logger.exception("Failed to dispatch transcription for %s", video_id)
            return False
        return True

    async def _persist(self, video_id: str, fields: Mapping[str, Any]) -> bool:
        try:
            await self.store.patch(video_id, fields)
        except (VideoNotFoundError, RecordConflictError, SQLAlchemyError):
            logger.exception("Failed to persist enrichment update for %s", video_id)
            return False
        return True

    async def _record_failure(
        self,
        video_id: str,
        attributes: VideoAttributes,
        status: TranscriptionStatus,
        message: str,
    ) -> VideoAttributes:
        patch = build_failure_patch(status, message, self._clock())
        await self._persist(video_id, patch)
        return replace(
            attributes,
            transcription_status=status,
            metadata={**attributes.metadata, **patch["metadata"]},
        )


def build_orchestrator(session: AsyncSession) -> EnrichmentOrchestrator:
    """Wire the orchestrator with the process-wide scraper and queue."""
    return EnrichmentOrchestrator(
        scraper=get_scraper(),
        dispatcher=QueueTranscriptionDispatcher(),
        store=VideoRecordStore(session),
    )
