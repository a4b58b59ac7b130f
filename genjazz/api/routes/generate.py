"""Random MIDI generation endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from genjazz.core.pipeline import GenerationPipeline, error_body

router = APIRouter()
logger = logging.getLogger(__name__)


class GenerateMidiRequest(BaseModel):
    """Optional solo parameters; both fall back to the solo stage defaults."""

    style: str | None = None
    tempo: int | float | None = None


def get_pipeline(request: Request) -> GenerationPipeline:
    return request.app.state.pipeline


@router.post("/api/generate-midi-random")
async def generate_midi_random(
    request: Request,
    body: GenerateMidiRequest | None = Body(default=None),
) -> JSONResponse:
    """
    Generate a random chord progression and an improvised solo over it.

    200: the chord backend's result, plus ``midiBase64``, ``time_ms_chords``
    and ``time_ms_improvisor``.
    500: ``{"error": "Failed to generate random MIDI", "details": ...}``.
    """
    params = body or GenerateMidiRequest()
    outcome = await get_pipeline(request).run(style=params.style, tempo=params.tempo)

    if outcome.ok:
        return JSONResponse(content=outcome.response)

    failure = outcome.failure
    logger.error(
        f"GATEWAY FAILURE at {failure.stage.value if failure else '?'}: "
        f"{failure.cause if failure else 'unknown'}"
    )
    return JSONResponse(status_code=500, content=dict(error_body(failure)))
