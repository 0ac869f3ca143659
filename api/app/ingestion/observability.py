"""Metrics tracking for scraper calls, keyed by platform.

The monitor only observes: every call is made and its outcome recorded, so
health reporting can flag platforms that keep failing.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, DefaultDict

from app.core.config import settings
from app.utils.redaction import redact_secrets

logger = logging.getLogger("app.ingestion")


@dataclass
class OperationMetrics:
    """Aggregated counters for a platform operation."""
    started: int = 0
    succeeded: int = 0
    unsuccessful: int = 0
    failed: int = 0
    failure_streak: int = 0
    failures_by_kind: Counter = field(default_factory=Counter)
    last_latency_ms: float | None = None
    last_error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "started": self.started,
            "succeeded": self.succeeded,
            "unsuccessful": self.unsuccessful,
            "failed": self.failed,
            "failure_streak": self.failure_streak,
            "failures_by_kind": dict(self.failures_by_kind),
            "last_latency_ms": self.last_latency_ms,
            "last_error": self.last_error,
        }


class ScrapeMonitor:
    """Track scraper outcomes per platform for health telemetry."""
    def __init__(self, *, degraded_after: int = 3) -> None:
        self.degraded_after = degraded_after
        self._metrics: DefaultDict[str, DefaultDict[str, OperationMetrics]] = defaultdict(
            lambda: defaultdict(OperationMetrics)
        )
        self._lock = asyncio.Lock()

    async def track(
        self,
        platform: str,
        operation: str,
        func: Callable[[], Awaitable[Any]],
        *,
        context: dict[str, Any] | None = None,
        classify: Callable[[BaseException], str] | None = None,
    ) -> Any:
        """Run a scraper call and record its latency and outcome.

        Implementation notes:
        - Raised errors count as failures, extend the failure streak and are
          re-raised unchanged.
        - A returned result with ``success=False`` counts as unsuccessful and
          leaves the streak alone.
        """
        context = context or {}
        async with self._lock:
            self._metrics[platform][operation].started += 1

        start = time.monotonic()
        try:
            result = await func()
        except Exception as exc:  # noqa: BLE001
            latency_ms = (time.monotonic() - start) * 1000
            kind = classify(exc) if classify else exc.__class__.__name__
            error_text = redact_secrets(str(exc) or exc.__class__.__name__)
            async with self._lock:
                metrics = self._metrics[platform][operation]
                metrics.failed += 1
                metrics.failure_streak += 1
                metrics.failures_by_kind[kind] += 1
                metrics.last_latency_ms = latency_ms
                metrics.last_error = error_text
                payload = {
                    "event": "scrape_failure",
                    "platform": platform,
                    "operation": operation,
                    "kind": kind,
                    "error": error_text,
                    "latency_ms": round(latency_ms, 2),
                    "failure_streak": metrics.failure_streak,
                    "context": context,
                }
            logger.warning(json.dumps(payload))
            raise

        latency_ms = (time.monotonic() - start) * 1000
        success = getattr(result, "success", True)
        async with self._lock:
            metrics = self._metrics[platform][operation]
            if success:
                metrics.succeeded += 1
                metrics.failure_streak = 0
                metrics.last_error = None
            else:
                metrics.unsuccessful += 1
            metrics.last_latency_ms = latency_ms
            payload = {
                "event": "scrape_success" if success else "scrape_unsuccessful",
                "platform": platform,
                "operation": operation,
                "latency_ms": round(latency_ms, 2),
                "context": context,
            }
        logger.info(json.dumps(payload))
        return result

    async def snapshot(self) -> dict[str, Any]:
        """Return per-platform operation metrics."""
        async with self._lock:
            return {
                platform: {name: metrics.as_dict() for name, metrics in operations.items()}
                for platform, operations in self._metrics.items()
            }


scrape_monitor = ScrapeMonitor(degraded_after=settings.scraper_degraded_failure_streak)
