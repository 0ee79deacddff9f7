"""Thin HTTP client used by the gateway to reach the assistant backend."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from .errors import (
    BackendError,
    BackendUnreachableError,
    InvalidResponseError,
    TransportTimeoutError,
)

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class BackendClient:
    """Issues exactly one request per call and decodes the JSON contract.

    The call runs under ``asyncio.wait_for``: when the budget fires, the
    pending request is cancelled and whatever it would have returned is
    dropped. There are no retries here.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=timeout)
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(self, endpoint: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
        """POST ``payload`` to ``endpoint`` and return the decoded body."""

        return await self._request("POST", endpoint, timeout, json=payload)

    async def fetch(self, endpoint: str, timeout: float) -> dict[str, Any]:
        """GET ``endpoint`` and return the decoded body."""

        return await self._request("GET", endpoint, timeout)

    async def _request(
        self,
        method: str,
        endpoint: str,
        timeout: float,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await asyncio.wait_for(
                self._client.request(
                    method,
                    endpoint,
                    json=json,
                    headers={"Content-Type": "application/json"},
                    timeout=timeout,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("transport.timed_out", endpoint=endpoint, timeout_s=timeout)
            raise TransportTimeoutError(
                f"Request to {endpoint} timed out after {timeout:g}s"
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("transport.request_failed", endpoint=endpoint, error=str(exc))
            raise BackendUnreachableError(f"Backend unreachable ({endpoint}): {exc}") from exc

        if response.status_code >= 400:
            body = _error_body(response)
            raise BackendError(
                f"Backend error {response.status_code}: {body.get('error', '')}",
                status_code=response.status_code,
                body=body,
                request_id=response.headers.get("x-request-id"),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError(f"Backend returned non-JSON body for {endpoint}") from exc
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Backend returned {type(data).__name__} for {endpoint}")
        return data


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {"error": _truncate(response.text or f"HTTP {response.status_code}")}
    if isinstance(data, dict):
        return data
    return {"error": _truncate(str(data))}


def _truncate(text: str, limit: int = 2000) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}...[truncated {len(text) - limit} chars]"
