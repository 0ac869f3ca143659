"""Ensure log redaction prevents secret leakage."""

from __future__ import annotations

import logging

from redis.exceptions import RedisError

import app.services.task_queue as task_queue_module
from app.core.config import settings
from app.utils.redaction import redact_media_url, redact_secrets


def test_task_queue_redacts_redis_url_in_logs(monkeypatch, caplog):
    secret_url = "redis://:supersecret@localhost:6379/0"
    monkeypatch.setattr(settings, "environment", "development")
    monkeypatch.setattr(settings, "redis_url", secret_url)

    class DummyRedis:
        @staticmethod
        def from_url(url: str):
            raise RedisError(f"Connection failed: {url}")

    monkeypatch.setattr(task_queue_module, "Redis", DummyRedis)

    caplog.set_level(logging.WARNING, logger="app.services.task_queue")
    queue = task_queue_module.TaskQueue()

    assert queue.enabled is False
    assert "supersecret" not in caplog.text
    assert "redis://***@localhost:6379/0" in caplog.text
    assert "supersecret" not in str(queue.snapshot())


def test_signed_media_urls_lose_their_query():
    url = "https://v16-webapp.tiktokcdn.com/clip.mp4?x-expires=1700000000&signature=abc123"
    assert redact_media_url(url) == "https://v16-webapp.tiktokcdn.com/clip.mp4?<redacted>"
    assert redact_media_url("https://www.tiktok.com/@c/video/1") == "https://www.tiktok.com/@c/video/1"
    assert redact_media_url(None) == ""


def test_bearer_tokens_are_redacted():
    assert redact_secrets("Authorization: Bearer abc.def") == "Authorization: Bearer ***"
