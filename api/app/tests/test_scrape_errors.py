from __future__ import annotations

import asyncio

import httpx
import pytest

from app.enrichment.errors import ScrapeErrorKind, classify_scrape_error, error_message, is_timeout_like
from app.ingestion.http import ExternalAPIError


@pytest.mark.parametrize(
    "error",
    [
        "upstream 524 Gateway Timeout",
        "Request timed out after 30s",
        ExternalAPIError("Upstream error 524 : origin did not respond"),
        asyncio.TimeoutError(),
        TimeoutError("deadline"),
        httpx.ReadTimeout("read"),
    ],
)
def test_timeout_like_errors(error):
    assert is_timeout_like(error) is True
    assert classify_scrape_error(error).kind is ScrapeErrorKind.TIMEOUT


@pytest.mark.parametrize("error", ["404 not found", "network unreachable", "", None])
def test_non_timeout_errors(error):
    assert is_timeout_like(error) is False


def test_timeout_without_message_gets_one():
    classified = classify_scrape_error(asyncio.TimeoutError())
    assert classified.is_timeout
    assert classified.message == "Scrape timed out"
    assert error_message(None) == ""


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (ExternalAPIError("Upstream error 429 Too Many Requests: slow down"), ScrapeErrorKind.RATE_LIMITED),
        (ExternalAPIError("Upstream error 404 Not Found: gone"), ScrapeErrorKind.NOT_FOUND),
        (RuntimeError("network unreachable"), ScrapeErrorKind.UNKNOWN),
    ],
)
def test_classify_other_errors(error, kind):
    classified = classify_scrape_error(error)
    assert classified.kind is kind
    assert classified.message == str(error)
    assert classified.is_timeout is False
