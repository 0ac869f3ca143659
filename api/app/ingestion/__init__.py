"""Clients for the external scraping and transcription services."""

from __future__ import annotations

from app.ingestion.base import BaseScraper
from app.ingestion.scraper import ScraperServiceClient
from app.ingestion.transcriber import TranscriptionClient

_SCRAPER: BaseScraper | None = None
_TRANSCRIBER: TranscriptionClient | None = None


def get_scraper() -> BaseScraper:
    """Return the process-wide scraper client."""
    global _SCRAPER
    if _SCRAPER is None:
        _SCRAPER = ScraperServiceClient()
    return _SCRAPER


def get_transcription_client() -> TranscriptionClient:
    """Return the process-wide transcription client."""
    global _TRANSCRIBER
    if _TRANSCRIBER is None:
        _TRANSCRIBER = TranscriptionClient()
    return _TRANSCRIBER
