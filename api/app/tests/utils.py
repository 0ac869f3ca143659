"""Shared fakes for enrichment tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.ingestion.base import BaseScraper, ScrapeOptions, ScrapeResult
from app.services.transcription_dispatcher import BaseTranscriptionDispatcher, TranscriptionDispatchRequest


@dataclass
class FakeScraper(BaseScraper):
    """Scraper that returns a canned result, raises, or hangs."""

    result: ScrapeResult | None = None
    error: BaseException | None = None
    delay: float = 0.0
    calls: list[tuple[str, ScrapeOptions | None]] = field(default_factory=list)
    source_name: str = "fake"

    async def scrape(self, url: str, options: ScrapeOptions | None = None) -> ScrapeResult:
        self.calls.append((url, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result or ScrapeResult(success=False, error="no result configured")


@dataclass
class FakeDispatcher(BaseTranscriptionDispatcher):
    """Dispatcher that records requests, optionally failing the enqueue."""

    error: BaseException | None = None
    requests: list[TranscriptionDispatchRequest] = field(default_factory=list)

    async def enqueue(self, request: TranscriptionDispatchRequest) -> str | None:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        return f"job-{len(self.requests)}"


FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW
