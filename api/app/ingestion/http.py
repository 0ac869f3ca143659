from __future__ import annotations

from typing import Any

import httpx


class ExternalAPIError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


async def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """POST a JSON body once and return the decoded response.

    Status codes are kept in the error message because callers classify
    failures by message text (a gateway timeout surfaces as "524").
    """
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload, headers=headers)
    except httpx.TimeoutException as exc:
        raise ExternalAPIError(f"Request to {httpx.URL(url).host} timed out: {exc}") from exc
    except httpx.HTTPError as exc:
        raise ExternalAPIError(f"Request to {httpx.URL(url).host} failed: {exc}") from exc

    if response.status_code >= 400:
        detail = response.text[:200].strip()
        raise ExternalAPIError(
            f"Upstream error {response.status_code} {response.reason_phrase}: {detail}",
            status_code=response.status_code,
        )
    try:
        data = response.json()
    except ValueError as exc:
        raise ExternalAPIError("Upstream returned a non-JSON body", status_code=response.status_code) from exc
    if not isinstance(data, dict):
        raise ExternalAPIError("Upstream returned an unexpected JSON shape", status_code=response.status_code)
    return data
