"""Client for the hosted transcription service used by the worker."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from app.core.config import settings
from app.ingestion.http import ExternalAPIError, post_json


@dataclass(slots=True)
class TranscriptionResult:
    transcript: str
    components: dict[str, Any] | None = None
    content_metadata: dict[str, Any] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)


class TranscriptionClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.transcription_api_url
        self.api_token = api_token or settings.transcription_api_token
        self._transport = transport

    async def transcribe(self, source_url: str, platform: str) -> TranscriptionResult:
        if not self.base_url:
            raise ExternalAPIError("Transcription service is not configured; set TRANSCRIPTION_API_URL")
        headers = {"accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        payload = await post_json(
            f"{self.base_url}/transcribe",
            {"url": source_url, "platform": platform},
            headers=headers,
            timeout=settings.transcription_request_timeout_seconds,
            transport=self._transport,
        )
        transcript = str(payload.get("transcript") or "").strip()
        if not transcript:
            raise ExternalAPIError("Transcription service returned an empty transcript")
        components = payload.get("components")
        return TranscriptionResult(
            transcript=transcript,
            components=components if isinstance(components, dict) else None,
            content_metadata=payload.get("contentMetadata") or {},
            details=payload.get("transcriptionMetadata") or {},
        )
