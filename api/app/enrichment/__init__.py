"""Pure helpers behind video enrichment: URL heuristics, error kinds, metadata merge."""

from app.enrichment.errors import ScrapeError, ScrapeErrorKind, classify_scrape_error, is_timeout_like
from app.enrichment.media_urls import (
    SuppliedUrls,
    build_fallback_candidates,
    detect_platform,
    is_direct_media_url,
    select_fallback_url,
)
from app.enrichment.merge import VideoAttributes, merge_scrape_result

__all__ = [
    "ScrapeError",
    "ScrapeErrorKind",
    "SuppliedUrls",
    "VideoAttributes",
    "build_fallback_candidates",
    "classify_scrape_error",
    "detect_platform",
    "is_direct_media_url",
    "is_timeout_like",
    "merge_scrape_result",
    "select_fallback_url",
]
