from __future__ import annotations

import pytest

from app.core.config import settings
from app.ingestion.base import ScrapeResult
from app.ingestion.http import ExternalAPIError

TIKTOK_PAGE = "https://www.tiktok.com/@creator/video/7300000000000000001"
TIKTOK_CDN = "https://v16-webapp.tiktokcdn.com/clip.mp4"


async def _create_collection(client, title: str = "Hooks") -> dict:
    res = await client.post("/api/collections", json={"user_id": "user-1", "title": title})
    assert res.status_code == 201
    return res.json()


@pytest.mark.asyncio
async def test_create_collection(client):
    collection = await _create_collection(client, "Ideas")
    assert collection["title"] == "Ideas"
    assert collection["video_count"] == 0
    assert collection["user_id"] == "user-1"

    res = await client.get(f"/api/collections/{collection['id']}")
    assert res.status_code == 200
    assert res.json()["id"] == collection["id"]


@pytest.mark.asyncio
async def test_add_video_enriches_and_dispatches(client, scraper, dispatcher):
    collection = await _create_collection(client)
    scraper.result = ScrapeResult(
        success=True,
        title="Filming hooks",
        author="creator",
        duration=18,
        download_url=TIKTOK_CDN,
        platform="tiktok",
        views=900,
    )

    res = await client.post(f"/api/collections/{collection['id']}/videos", json={"url": TIKTOK_PAGE})

    assert res.status_code == 201
    payload = res.json()
    assert payload["success"] is True
    assert payload["transcription_status"] == "processing"
    video = payload["video"]
    assert video["title"] == "Filming hooks"
    assert video["platform"] == "tiktok"
    assert video["original_url"] == TIKTOK_PAGE
    assert video["insights"] == {"views": 900, "likes": 0, "comments": 0, "saves": 0}
    assert video["metadata"]["transcriptionStatus"] == "processing"
    assert video["metadata"]["originalUrl"] == TIKTOK_PAGE
    assert [request.source_url for request in dispatcher.requests] == [TIKTOK_CDN]

    refreshed = await client.get(f"/api/collections/{collection['id']}")
    assert refreshed.json()["video_count"] == 1

    polled = await client.get(f"/api/videos/{video['id']}")
    assert polled.status_code == 200
    assert polled.json()["transcription_status"] == "processing"


@pytest.mark.asyncio
async def test_add_video_returns_created_even_when_enrichment_fails(client, scraper, dispatcher):
    collection = await _create_collection(client)
    scraper.error = ExternalAPIError("network unreachable")

    res = await client.post(f"/api/collections/{collection['id']}/videos", json={"url": TIKTOK_PAGE})

    assert res.status_code == 201
    payload = res.json()
    assert payload["transcription_status"] == "failed"
    assert payload["video"]["title"] == "Video from tiktok"
    assert payload["video"]["metadata"]["transcriptionError"] == "Download URL unavailable after scrape failure"
    assert dispatcher.requests == []


@pytest.mark.asyncio
async def test_add_video_falls_back_to_supplied_cdn_url(client, scraper, dispatcher):
    collection = await _create_collection(client)
    scraper.error = ExternalAPIError("Upstream error 500 Internal Server Error: boom")

    res = await client.post(
        f"/api/collections/{collection['id']}/videos",
        json={"url": TIKTOK_PAGE, "video_url": TIKTOK_CDN},
    )

    assert res.status_code == 201
    assert [request.source_url for request in dispatcher.requests] == [TIKTOK_CDN]
    assert res.json()["transcription_status"] == "unset"


@pytest.mark.asyncio
async def test_add_video_rejects_invalid_url(client):
    collection = await _create_collection(client)
    res = await client.post(f"/api/collections/{collection['id']}/videos", json={"url": "not a url"})
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_add_video_to_unknown_collection(client):
    res = await client.post("/api/collections/missing/videos", json={"url": TIKTOK_PAGE})
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_get_unknown_video(client):
    res = await client.get("/api/videos/missing")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_add_video_scrape_is_bounded_by_request_budget(client, scraper, monkeypatch):
    collection = await _create_collection(client)
    monkeypatch.setattr(settings, "import_request_timeout_seconds", 0.2)
    scraper.delay = 0.5
    scraper.result = ScrapeResult(success=True, download_url=TIKTOK_CDN, platform="tiktok")

    res = await client.post(f"/api/collections/{collection['id']}/videos", json={"url": TIKTOK_PAGE})

    assert res.status_code == 201
    assert res.json()["transcription_status"] == "timeout"
    _, options = scraper.calls[0]
    assert 0 < options.timeout_seconds <= 0.2
