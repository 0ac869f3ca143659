from __future__ import annotations

import pytest

from app.core.config import settings


def _stub_snapshot(monkeypatch, payload: dict[str, object]) -> list[bool]:
    called: list[bool] = []

    async def _snapshot_stub() -> dict[str, object]:
        called.append(True)
        return payload

    monkeypatch.setattr("app.main.scrape_monitor.snapshot", _snapshot_stub)
    return called


def _scrape_metrics(**overrides) -> dict[str, object]:
    metrics = {
        "started": 3,
        "succeeded": 0,
        "unsuccessful": 0,
        "failed": 3,
        "failure_streak": 0,
        "failures_by_kind": {},
        "last_latency_ms": 120.0,
        "last_error": None,
    }
    metrics.update(overrides)
    return metrics


@pytest.mark.asyncio
async def test_health_reports_ok_without_allowlist(client, monkeypatch):
    called = _stub_snapshot(monkeypatch, {})
    monkeypatch.setattr(settings, "health_allowlist", [])

    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert called == []


@pytest.mark.asyncio
async def test_health_allows_allowlisted_clients(client, monkeypatch):
    _stub_snapshot(monkeypatch, {})
    monkeypatch.setattr(settings, "health_allowlist", ["testserver"])

    response = await client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["scraping"]["issues"] == []
    assert payload["queue"]["status"] == "offline"


@pytest.mark.asyncio
async def test_health_flags_platforms_with_failure_streaks(client, monkeypatch):
    _stub_snapshot(
        monkeypatch,
        {
            "tiktok": {"scrape": _scrape_metrics(failure_streak=3, last_error="Upstream error 500: boom")},
            "instagram": {"scrape": _scrape_metrics(failure_streak=0, last_error=None)},
        },
    )
    monkeypatch.setattr(settings, "health_allowlist", ["127.0.0.0/8", "testserver"])
    monkeypatch.setattr("app.main.scrape_monitor.degraded_after", 3)

    response = await client.get("/api/health")
    payload = response.json()
    assert payload["status"] == "degraded"
    telemetry = payload["scraping"]
    assert telemetry["platforms"]["tiktok"]["state"] == "degraded"
    assert telemetry["platforms"]["instagram"]["state"] == "ok"
    assert telemetry["issues"] == [{"platform": "tiktok", "reason": "repeated_failures", "failure_streak": 3}]


@pytest.mark.asyncio
async def test_health_stays_ok_below_the_streak_threshold(client, monkeypatch):
    _stub_snapshot(monkeypatch, {"tiktok": {"scrape": _scrape_metrics(failure_streak=2, last_error="boom")}})
    monkeypatch.setattr(settings, "health_allowlist", ["testserver"])
    monkeypatch.setattr("app.main.scrape_monitor.degraded_after", 3)

    response = await client.get("/health")
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["scraping"]["platforms"]["tiktok"]["operations"]["scrape"]["last_error"] == "boom"
