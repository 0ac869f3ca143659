"""RQ task queue wrapper with in-process fallback for local/test runs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Retry
from rq.registry import DeferredJobRegistry, FailedJobRegistry, ScheduledJobRegistry, StartedJobRegistry
from rq.worker import Worker

from app.core.config import settings
from app.utils.datetime import isoformat_z, utcnow
from app.utils.redaction import redact_secrets

logger = logging.getLogger("app.services.task_queue")

# Retry profile that gives transcription jobs a few chances with backoff.
DEFAULT_RETRY = Retry(max=3, interval=[5, 15, 30])


class TaskQueue:
    """Thin wrapper around RQ that can fall back to in-process background tasks."""

    def __init__(self) -> None:
        self.queue_names: list[str] = settings.worker_queue_names or ["default"]
        self._connection: Redis | None = None
        self._enabled = False
        self._background: set[asyncio.Task[Any]] = set()
        self._bootstrap()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def connection(self) -> Redis | None:
        return self._connection

    def _bootstrap(self) -> None:
        """Initialize Redis connectivity unless disabled for tests."""
        if settings.environment.lower() == "test":
            logger.info("Task queue disabled in test environment")
            return
        try:
            connection = Redis.from_url(settings.redis_url)
            connection.ping()
        except Exception as exc:  # pragma: no cover - network/redis specific
            logger.warning("Redis unavailable; running jobs in-process: %s", redact_secrets(str(exc)))
            self._connection = None
            self._enabled = False
            return
        self._connection = connection
        self._enabled = True
        logger.info("Task queue ready (queues: %s)", ", ".join(self.queue_names))

    def get_queue(self, queue_name: str | None = None) -> Queue:
        """Return a configured queue instance for enqueuing jobs."""
        if not self._connection:
            raise RuntimeError("Queue connection not initialized")
        target = queue_name or (self.queue_names[0] if self.queue_names else "default")
        return Queue(target, connection=self._connection)

    def _run_in_background(self, fallback: Callable[[], Awaitable[Any]], description: str | None) -> None:
        task = asyncio.create_task(fallback(), name=description)
        self._background.add(task)

        def _done(finished: asyncio.Task[Any]) -> None:
            self._background.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                logger.error("Background job %s failed", description, exc_info=exc)

        task.add_done_callback(_done)

    async def enqueue_nowait(
        self,
        func: Callable[..., Any],
        *,
        fallback: Callable[[], Awaitable[Any]],
        queue_name: str | None = None,
        timeout_seconds: int = 60,
        retry: Retry | None = DEFAULT_RETRY,
        description: str | None = None,
        **kwargs: Any,
    ) -> str | None:
        """Enqueue a job without waiting for it.

        Returns the RQ job id, or None when the fallback coroutine was
        scheduled on the running event loop instead.
        """
        if not self._enabled or not self._connection:
            self._run_in_background(fallback, description)
            return None

        def _enqueue() -> str:
            queue = self.get_queue(queue_name)
            enqueue_kwargs: dict[str, Any] = {
                "kwargs": kwargs,
                "job_timeout": timeout_seconds,
                "description": description,
            }
            if retry:
                enqueue_kwargs["retry"] = retry
            return queue.enqueue(func, **enqueue_kwargs).id

        try:
            return await asyncio.to_thread(_enqueue)
        except RedisError as exc:  # pragma: no cover - network/redis specific
            logger.warning("Running job in-process after queue failure: %s", redact_secrets(str(exc)))
            self._run_in_background(fallback, description)
            return None

    async def drain(self) -> None:
        """Wait for in-process fallback jobs; used on shutdown and in tests."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def snapshot(self) -> dict[str, Any]:
        """Return a diagnostic snapshot of queue and worker state."""
        if not self._connection:
            return {
                "status": "offline",
                "queues": [],
                "workers": [],
                "in_process_jobs": len(self._background),
                "error": "queue connection not initialized",
                "redis_url": redact_secrets(settings.redis_url),
            }

        queues: list[dict[str, Any]] = []
        for name in self.queue_names:
            queue = Queue(name, connection=self._connection)
            queues.append(
                {
                    "name": name,
                    "size": queue.count,
                    "deferred": len(DeferredJobRegistry(queue=queue)),
                    "scheduled": len(ScheduledJobRegistry(queue=queue)),
                    "started": len(StartedJobRegistry(queue=queue)),
                    "failed": len(FailedJobRegistry(queue=queue)),
                }
            )

        workers: list[dict[str, Any]] = []
        try:
            for worker in Worker.all(connection=self._connection):
                workers.append(
                    {
                        "name": worker.name,
                        "state": getattr(worker, "state", "unknown"),
                        "queues": list(worker.queue_names()),
                        "current_job_id": worker.get_current_job_id(),
                    }
                )
        except RedisError as exc:  # pragma: no cover - network/redis specific
            logger.warning("Unable to list workers: %s", exc)

        warnings: list[str] = []
        if not workers:
            warnings.append("no_workers")
        return {
            "status": "online" if not warnings else "degraded",
            "queues": queues,
            "workers": workers,
            "redis_url": redact_secrets(settings.redis_url),
            "warnings": warnings,
            "checked_at": isoformat_z(utcnow()),
        }


task_queue = TaskQueue()
