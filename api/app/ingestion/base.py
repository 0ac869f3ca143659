"""Base scraper primitives for video metadata enrichment."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(slots=True)
class ScrapeOptions:
    """Per-call knobs passed through to the scraping service."""
    include_download_url: bool = True
    timeout_seconds: float | None = None


@dataclass(slots=True)
class ScrapeResult:
    """Normalized scrape payload; consumed once by the metadata merge."""
    success: bool
    title: str | None = None
    author: str | None = None
    duration: float | None = None
    thumbnail_url: str | None = None
    download_url: str | None = None
    video_url: str | None = None
    audio_url: str | None = None
    description: str | None = None
    platform: str | None = None
    views: float | None = None
    likes: float | None = None
    comments: float | None = None
    shares: float | None = None
    saves: float | None = None
    error: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Return the result without the raw passthrough, dropping empty fields."""
        payload = asdict(self)
        payload.pop("raw", None)
        return {key: value for key, value in payload.items() if value is not None}


class BaseScraper:
    """Abstract interface for the external metadata scraper.

    Implementations either return a ScrapeResult (possibly with success=False)
    or raise; the error message is the only failure signal callers get.
    """
    source_name: str

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        raise NotImplementedError
