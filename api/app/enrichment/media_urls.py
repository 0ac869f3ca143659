"""Media URL heuristics: platform detection and direct CDN media links.

Matching is plain case-insensitive substring checks. None of these helpers
touch the network or raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from urllib.parse import urlsplit

from app.models.video import Platform

INSTAGRAM_CDN_HOSTS = ("cdninstagram.com",)
TIKTOK_CDN_HOSTS = ("tiktokcdn.com", "bytecdn.cn", "ibyteimg.com")
MP4_MARKER = ".mp4"


def is_direct_media_url(candidate: Any) -> bool:
    """Return True if candidate is a platform-hosted, directly downloadable mp4."""
    if not isinstance(candidate, str) or not candidate:
        return False
    lower = candidate.lower()
    if MP4_MARKER not in lower:
        return False
    if any(host in lower for host in INSTAGRAM_CDN_HOSTS):
        return True
    return any(host in lower for host in TIKTOK_CDN_HOSTS)


def select_fallback_url(candidates: Iterable[Any]) -> tuple[str, bool]:
    """Return the first direct media URL in priority order, or ("", False)."""
    for candidate in candidates:
        if is_direct_media_url(candidate):
            return candidate, True
    return "", False


@dataclass(slots=True)
class SuppliedUrls:
    """URLs the caller already had for the video before scraping."""
    download_url: str | None = None
    video_url: str | None = None
    original_url: str | None = None


def build_fallback_candidates(
    *,
    record_url: str | None,
    record_metadata: Mapping[str, Any] | None,
    supplied: SuppliedUrls | None,
) -> list[Any]:
    """Assemble fallback candidates; earlier entries are more specific and win."""
    supplied = supplied or SuppliedUrls()
    return [
        record_url,
        (record_metadata or {}).get("downloadUrl"),
        supplied.download_url,
        supplied.video_url,
        supplied.original_url,
    ]


def detect_platform(url: str | None) -> str:
    """Guess the platform tag from a page or CDN URL's host."""
    if not url:
        return Platform.OTHER.value
    try:
        host = (urlsplit(url.strip()).hostname or "").lower()
    except ValueError:
        return Platform.OTHER.value
    if "tiktok" in host or any(cdn in host for cdn in TIKTOK_CDN_HOSTS):
        return Platform.TIKTOK.value
    if "instagram" in host or "instagr.am" in host or "cdninstagram" in host:
        return Platform.INSTAGRAM.value
    if "youtube" in host or host == "youtu.be":
        return Platform.YOUTUBE.value
    return Platform.OTHER.value
