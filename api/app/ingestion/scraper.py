from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from app.core.config import settings
from app.enrichment.media_urls import detect_platform
from app.ingestion.base import BaseScraper, ScrapeOptions, ScrapeResult
from app.ingestion.http import ExternalAPIError, post_json
from app.utils.redaction import redact_media_url

logger = logging.getLogger("app.ingestion.scraper")

# Aliases seen across the scraper's Instagram and TikTok payloads, in priority order.
TITLE_KEYS = ("title", "caption", "text", "desc")
AUTHOR_KEYS = ("author", "authorName", "ownerUsername", "username", "uniqueId")
DURATION_KEYS = ("duration", "videoDuration", "durationSeconds")
THUMBNAIL_KEYS = ("thumbnailUrl", "thumbnail_url", "thumbnail", "displayUrl", "cover", "coverUrl")
DOWNLOAD_KEYS = ("downloadUrl", "download_url", "downloadAddr", "videoDownloadUrl")
VIDEO_KEYS = ("videoUrl", "video_url", "videoPlayUrl", "playAddr", "playUrl")
AUDIO_KEYS = ("audioUrl", "audio_url", "musicUrl", "playUrlAudio")
DESCRIPTION_KEYS = ("description", "caption", "desc", "text")
METRIC_KEYS = {
    "views": ("views", "viewCount", "playCount", "videoViewCount", "videoPlayCount"),
    "likes": ("likes", "likeCount", "likesCount", "diggCount"),
    "comments": ("comments", "commentCount", "commentsCount"),
    "shares": ("shares", "shareCount", "sharesCount"),
    "saves": ("saves", "saveCount", "collectCount"),
}


def _first(sources: Iterable[dict[str, Any]], keys: Iterable[str]) -> Any:
    for source in sources:
        for key in keys:
            value = source.get(key)
            if value not in (None, ""):
                return value
    return None


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        return None


def normalize_payload(payload: dict[str, Any], url: str) -> ScrapeResult:
    """Reshape the scraper's JSON envelope into a ScrapeResult."""
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
    sources = [data]
    for key in ("stats", "metrics", "video"):
        if isinstance(data.get(key), dict):
            sources.append(data[key])

    success = payload.get("success")
    if success is None:
        success = bool(_first(sources, DOWNLOAD_KEYS + VIDEO_KEYS + TITLE_KEYS))

    metrics = {name: _number(_first(sources, keys)) for name, keys in METRIC_KEYS.items()}
    platform = _text(data.get("platform")) or detect_platform(url)
    return ScrapeResult(
        success=bool(success),
        title=_text(_first(sources, TITLE_KEYS)),
        author=_text(_first(sources, AUTHOR_KEYS)),
        duration=_number(_first(sources, DURATION_KEYS)),
        thumbnail_url=_text(_first(sources, THUMBNAIL_KEYS)),
        download_url=_text(_first(sources, DOWNLOAD_KEYS)),
        video_url=_text(_first(sources, VIDEO_KEYS)),
        audio_url=_text(_first(sources, AUDIO_KEYS)),
        description=_text(_first(sources, DESCRIPTION_KEYS)),
        platform=platform.lower(),
        error=_text(payload.get("error")),
        raw=data,
        **metrics,
    )


class ScraperServiceClient(BaseScraper):
    """HTTP client for the hosted metadata scraper.

    One request per call; the caller owns deadlines and fallbacks.
    """
    source_name = "scraper"

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.scraper_api_url
        self.api_token = api_token or settings.scraper_api_token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        if not self.base_url:
            raise ExternalAPIError("Scraper service is not configured; set SCRAPER_API_URL")
        options = options or ScrapeOptions()
        timeout = options.timeout_seconds or settings.scrape_timeout_seconds
        payload = await post_json(
            f"{self.base_url}/scrape",
            {"url": url, "includeDownloadUrl": options.include_download_url},
            headers=self._headers(),
            timeout=timeout,
            transport=self._transport,
        )
        result = normalize_payload(payload, url)
        logger.debug(
            "Scraped %s (success=%s, download=%s)",
            redact_media_url(url),
            result.success,
            redact_media_url(result.download_url),
        )
        return result
