"""Shared test doubles for the gateway backends."""
from __future__ import annotations

from pathlib import Path

import httpx

CHORDS_URL = "http://chords:3002"
SOLO_URL = "http://improvisor:4000"


def make_response(
    status_code: int = 200,
    json_body: object | None = None,
    text: str | None = None,
) -> httpx.Response:
    """A real httpx.Response carrying either a JSON or a text body."""
    request = httpx.Request("GET", "http://test")
    if json_body is not None:
        return httpx.Response(status_code, json=json_body, request=request)
    return httpx.Response(status_code, text=text or "", request=request)


def chord_result(**overrides: object) -> dict[str, object]:
    """Chord backend payload: C, AABA, two sections."""
    r: dict[str, object] = {
        "key": "C",
        "structure": "AABA",
        "sections": [{"chords": "Cmaj7"}, {"chords": "Dm7"}],
    }
    r.update(overrides)
    return r


class FakeBackends:
    """Routes BackendClient requests to canned chord/solo answers.

    Each answer is an ``httpx.Response`` or an exception to raise.
    """

    def __init__(self) -> None:
        self.chords: httpx.Response | BaseException = make_response(json_body=chord_result())
        self.solo: httpx.Response | BaseException = make_response(json_body={"midiBase64": "QUJD"})
        self.calls: list[tuple[str, str, object]] = []

    async def handle(self, method: str, url: str, json: object = None) -> httpx.Response:
        self.calls.append((method, url, json))
        answer = self.solo if url.startswith(SOLO_URL) else self.chords
        if isinstance(answer, BaseException):
            raise answer
        return answer

    @property
    def solo_calls(self) -> list[tuple[str, str, object]]:
        return [c for c in self.calls if c[1].startswith(SOLO_URL)]

    @property
    def chords_calls(self) -> list[tuple[str, str, object]]:
        return [c for c in self.calls if c[1].startswith(CHORDS_URL)]


def read_log_rows(path: Path) -> list[list[str]]:
    """Metrics log rows (header excluded), split on the field delimiter."""
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.split(";") for line in lines[1:]]
