"""Merge a scrape result into a video's stored attributes.

Invariants:
- Pure: no I/O, no clock reads; the same inputs give the same output apart
  from the timestamps derived from ``now``.
- Counters never become null; unknown counters fall back to the prior value,
  then 0. ``saves`` is never touched by scraping.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from app.ingestion.base import ScrapeResult
from app.models.video import TranscriptionStatus, Video
from app.utils.datetime import isoformat_z

SCRAPED_COUNTERS = ("views", "likes", "comments")
METRIC_FIELDS = ("views", "likes", "comments", "shares")
IMPORT_SOURCE = "import"


@dataclass(slots=True)
class VideoAttributes:
    """Mutable view of a video record used by the enrichment pipeline."""
    url: str
    title: str
    platform: str
    thumbnail_url: str | None = None
    author: str | None = None
    duration: float = 0
    transcription_status: TranscriptionStatus = TranscriptionStatus.UNSET
    insights: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    content_metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_video(cls, video: Video) -> "VideoAttributes":
        return cls(
            url=video.url,
            title=video.title,
            platform=video.platform,
            thumbnail_url=video.thumbnail_url,
            author=video.author,
            duration=video.duration,
            transcription_status=video.transcription_status,
            insights=dict(video.insights or {}),
            metadata=dict(video.metadata_ or {}),
            content_metadata=dict(video.content_metadata or {}),
        )


def finite_number(value: Any) -> float | int | None:
    """Return value if it is a real, finite number; bools and NaN do not count."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _merge_insights(prior: dict[str, Any], result: ScrapeResult) -> dict[str, Any]:
    insights = dict(prior)
    for name in SCRAPED_COUNTERS:
        scraped = finite_number(getattr(result, name))
        if scraped is not None:
            insights[name] = scraped
        else:
            insights[name] = finite_number(prior.get(name)) or 0
    insights["saves"] = finite_number(prior.get("saves")) or 0
    return insights


def _metrics(result: ScrapeResult) -> dict[str, Any] | None:
    metrics = {name: finite_number(getattr(result, name)) for name in METRIC_FIELDS}
    metrics = {name: value for name, value in metrics.items() if value is not None}
    return metrics or None


def merge_scrape_result(
    prior: VideoAttributes,
    result: ScrapeResult,
    now: datetime,
    *,
    original_url: str | None = None,
) -> tuple[VideoAttributes, dict[str, Any]]:
    """Compute merged attributes plus the field patch to persist."""
    timestamp = isoformat_z(now)
    title = result.title or prior.title
    url = result.video_url or result.download_url or prior.url

    metadata: dict[str, Any] = {
        **prior.metadata,
        "originalUrl": original_url or prior.metadata.get("originalUrl") or prior.url,
        "source": IMPORT_SOURCE,
        "scrape": result.raw or result.as_dict(),
        "scrapedAt": timestamp,
        "transcriptionStatus": TranscriptionStatus.PROCESSING.value,
        "transcriptionQueuedAt": timestamp,
    }
    if result.download_url:
        metadata["downloadUrl"] = result.download_url
    if result.audio_url:
        metadata["audioUrl"] = result.audio_url
    metrics = _metrics(result)
    if metrics:
        metadata["metrics"] = metrics

    content_metadata = {
        **prior.content_metadata,
        "description": result.description or prior.content_metadata.get("description") or title,
    }

    merged = replace(
        prior,
        url=url,
        title=title,
        platform=result.platform or prior.platform,
        thumbnail_url=result.thumbnail_url or prior.thumbnail_url,
        author=result.author or prior.author,
        duration=result.duration if finite_number(result.duration) is not None else prior.duration,
        transcription_status=TranscriptionStatus.PROCESSING,
        insights=_merge_insights(prior.insights, result),
        metadata=metadata,
        content_metadata=content_metadata,
    )
    updates: dict[str, Any] = {
        "url": merged.url,
        "title": merged.title,
        "platform": merged.platform,
        "thumbnail_url": merged.thumbnail_url,
        "author": merged.author,
        "duration": merged.duration,
        "transcription_status": merged.transcription_status,
        "insights": merged.insights,
        "metadata": merged.metadata,
        "content_metadata": merged.content_metadata,
    }
    return merged, updates
