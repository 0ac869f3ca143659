"""Classification of scraper failures.

The scraping service exposes no structured error codes, so apart from a few
exception types everything here is substring matching over the error message.
A wording change upstream (e.g. "deadline exceeded" instead of "timed out")
silently moves an error into the UNKNOWN bucket.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass

import httpx

TIMEOUT_MARKERS = ("timeout", "timed out", "524")
RATE_LIMIT_MARKERS = ("429", "rate limit", "rate-limit", "too many requests", "quota")
NOT_FOUND_MARKERS = ("404", "not found", "no longer available", "private video")


class ScrapeErrorKind(str, enum.Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class ScrapeError:
    """A scraper failure reduced to a kind plus its original message."""
    kind: ScrapeErrorKind
    message: str

    @property
    def is_timeout(self) -> bool:
        return self.kind is ScrapeErrorKind.TIMEOUT


def error_message(error: BaseException | str | None) -> str:
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    message = str(error)
    if not message and isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return "Scrape timed out"
    return message or error.__class__.__name__


def _is_deadline_error(error: BaseException | str | None) -> bool:
    return isinstance(error, (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException))


def is_timeout_like(error: BaseException | str | None) -> bool:
    """Return True if the error looks like a scrape timeout."""
    if _is_deadline_error(error):
        return True
    normalized = error_message(error).lower()
    return any(marker in normalized for marker in TIMEOUT_MARKERS)


def classify_scrape_error(error: BaseException | str | None) -> ScrapeError:
    """Reduce an exception (or bare message) to a ScrapeError."""
    message = error_message(error)
    if is_timeout_like(error):
        return ScrapeError(ScrapeErrorKind.TIMEOUT, message)
    normalized = message.lower()
    if any(marker in normalized for marker in RATE_LIMIT_MARKERS):
        return ScrapeError(ScrapeErrorKind.RATE_LIMITED, message)
    if any(marker in normalized for marker in NOT_FOUND_MARKERS):
        return ScrapeError(ScrapeErrorKind.NOT_FOUND, message)
    return ScrapeError(ScrapeErrorKind.UNKNOWN, message)
