"""Backend HTTP client.

One call = one request to a named backend, timed and sized, with every
failure normalised into a ``BackendError``.  The client deliberately does
not log or persist anything: timings and sizes flow back to the caller,
which owns the metrics row.
"""
from __future__ import annotations

import asyncio
import json
import time as _time
from dataclasses import dataclass

import httpx

from genjazz.config import GatewaySettings
from genjazz.core.errors import BackendError, BackendErrorKind

# Logical backend names, used for base-URL lookup and error attribution.
CHORDS_BACKEND = "chords"
SOLO_BACKEND = "solo"

_CONNECTION_LIMITS = httpx.Limits(
    max_connections=100,
    max_keepalive_connections=20,
    keepalive_expiry=30.0,
)


@dataclass(frozen=True)
class BackendCallResult:
    """Decoded JSON payload plus the measurements taken around the call."""

    payload: object
    elapsed_ms: int
    size_bytes: int


def json_size_bytes(payload: object) -> int:
    """UTF-8 length of the compact JSON serialisation of *payload*."""
    return len(
        json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    )


def _elapsed_ms(started: float) -> int:
    return int(round((_time.monotonic() - started) * 1000))


def _decode_body(response: httpx.Response) -> object | None:
    """Best-effort decode of an error response body (JSON, else text)."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class BackendClient:
    """
    Async client for the chord and solo backends.

    Holds one long-lived ``httpx.AsyncClient`` so keepalive connections are
    reused across requests.  Call ``close()`` from the application lifespan.
    """

    def __init__(self, settings: GatewaySettings):
        self.timeout = settings.backend_timeout_seconds
        self.base_urls: dict[str, str] = {
            CHORDS_BACKEND: settings.chords_service_url,
            SOLO_BACKEND: settings.impro_service_url,
        }
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=_CONNECTION_LIMITS,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def url_for(self, target: str, path: str) -> str:
        try:
            base = self.base_urls[target]
        except KeyError:
            raise ValueError(f"Unknown backend {target!r}") from None
        return f"{base}/{path.lstrip('/')}"

    async def call(
        self,
        target: str,
        method: str,
        path: str,
        body: object | None = None,
    ) -> BackendCallResult:
        """Issue one request to *target* and return its decoded JSON payload.

        Raises
        ------
        BackendError
            ``TIMEOUT`` when the per-call budget is exceeded.  The budget
            covers the whole exchange, body included, not each read,
            ``UPSTREAM_UNREACHABLE`` on connection errors and non-2xx
            answers (with the decoded body attached), and
            ``MALFORMED_UPSTREAM_OUTPUT`` when a 2xx body is not JSON.
        """
        url = self.url_for(target, path)
        started = _time.monotonic()
        try:
            response = await asyncio.wait_for(
                self.client.request(method, url, json=body),
                timeout=self.timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise BackendError(
                BackendErrorKind.TIMEOUT,
                f"{target} backend timed out after {self.timeout:g}s ({type(exc).__name__})",
                target=target,
                elapsed_ms=_elapsed_ms(started),
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendError(
                BackendErrorKind.UPSTREAM_UNREACHABLE,
                f"{target} backend unreachable: {str(exc) or type(exc).__name__}",
                target=target,
                elapsed_ms=_elapsed_ms(started),
            ) from exc
        elapsed_ms = _elapsed_ms(started)

        if response.is_error:
            raise BackendError(
                BackendErrorKind.UPSTREAM_UNREACHABLE,
                f"{target} backend responded with status {response.status_code}",
                target=target,
                upstream_body=_decode_body(response),
                elapsed_ms=elapsed_ms,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise BackendError(
                BackendErrorKind.MALFORMED_UPSTREAM_OUTPUT,
                f"{target} backend returned a non-JSON body",
                target=target,
                upstream_body=response.text[:500] or None,
                elapsed_ms=elapsed_ms,
            ) from exc

        return BackendCallResult(
            payload=payload,
            elapsed_ms=elapsed_ms,
            size_bytes=json_size_bytes(payload),
        )
