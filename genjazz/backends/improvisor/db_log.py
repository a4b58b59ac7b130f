"""Fire-and-forget forwarding of solo requests to the external log database.

The DB service is optional.  Posts are scheduled as background tasks so the
HTTP response never waits on them, and any failure is dropped after a debug
log line: the sink must never affect the solo result.
"""
from __future__ import annotations

import asyncio
import json
import logging

import httpx

logger = logging.getLogger(__name__)


class DbLogForwarder:
    """Posts ``{request, response}`` pairs to ``{base_url}/api/log``."""

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None
        # Strong references so pending tasks are not garbage-collected.
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def send(self, request: dict[str, object], response: dict[str, object]) -> None:
        payload = {
            "request": json.dumps(request, separators=(",", ":")),
            "response": json.dumps(response, separators=(",", ":")),
        }
        try:
            await self.client.post(f"{self.base_url}/api/log", json=payload)
        except Exception as exc:
            logger.debug(f"DB log post failed (ignored): {exc}")

    def forward(self, request: dict[str, object], response: dict[str, object]) -> None:
        """Schedule ``send`` without awaiting it."""
        task = asyncio.create_task(self.send(request, response))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for pending posts (used at shutdown)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        if self._client:
            await self._client.aclose()
            self._client = None
