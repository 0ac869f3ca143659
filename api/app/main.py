"""FastAPI application entrypoint and health reporting utilities.

Invariants:
- Health detail is only exposed to allowlisted hosts.
"""

import ipaddress
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import settings
from app.ingestion.observability import scrape_monitor
from app.services.task_queue import task_queue

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix=settings.api_prefix)


@app.on_event("shutdown")
async def _drain_background_jobs() -> None:
    """Let in-process transcription jobs finish before the loop closes."""
    await task_queue.drain()


def _summarize_scraping(snapshot: dict[str, Any], degraded_after: int) -> dict[str, Any]:
    """Flag platforms whose scrapes keep raising; a platform recovers on its next success."""
    issues: list[dict[str, Any]] = []
    platforms: dict[str, Any] = {}
    for platform, operations in snapshot.items():
        streak = max((int(metrics.get("failure_streak") or 0) for metrics in operations.values()), default=0)
        degraded = streak >= degraded_after
        if degraded:
            issues.append({"platform": platform, "reason": "repeated_failures", "failure_streak": streak})
        platforms[platform] = {"state": "degraded" if degraded else "ok", "operations": operations}
    return {"platforms": platforms, "issues": issues}


def _entry_matches(entry: str, candidate: str) -> bool:
    """Return True if an allowlist entry matches a candidate host/IP."""
    try:
        network = ipaddress.ip_network(entry, strict=False)
        return ipaddress.ip_address(candidate) in network
    except ValueError:
        return entry.casefold() == candidate.casefold()


def _ip_or_host_allowlisted(request: Request) -> bool:
    """Check request client/host headers against the health allowlist."""
    if not settings.health_allowlist:
        return False
    client_candidates: list[str] = []
    if request.client and request.client.host:
        client_candidates.append(request.client.host)
    host_header = request.headers.get("host")
    if host_header:
        client_candidates.append(host_header.split(":")[0])
    for candidate in client_candidates:
        for entry in settings.health_allowlist:
            if entry and _entry_matches(entry, candidate):
                return True
    return False


@app.get("/health", tags=["internal"])
@app.get(f"{settings.api_prefix}/health", tags=["internal"])
async def health(request: Request) -> dict[str, Any]:
    """Return health status and, for allowlisted callers, scraper and queue telemetry."""
    if not _ip_or_host_allowlisted(request):
        return {"status": "ok"}

    telemetry = _summarize_scraping(await scrape_monitor.snapshot(), scrape_monitor.degraded_after)
    queue = task_queue.snapshot()
    degraded = bool(telemetry["issues"]) or queue.get("status") == "degraded"
    return {"status": "degraded" if degraded else "ok", "scraping": telemetry, "queue": queue}
