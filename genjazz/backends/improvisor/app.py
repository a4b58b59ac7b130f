"""
Improvisor Service

Generates a jazz solo over a ``|``-delimited chord progression by running
the GenJazz solos generator, which prints the MIDI file as base64 on stdout.

- ``POST /api/generate-solo`` → ``{"midi_base64", "time_ms"}``
- Every success is appended to a semicolon-separated request log.
- Request/response pairs are forwarded to the DB service in the background.

Entry point: ``genjazz-improvisor`` or
``uvicorn genjazz.backends.improvisor.app:create_app --factory --port 4000``
"""
from __future__ import annotations

import logging
import time as _time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from genjazz.backends.improvisor.config import ImprovisorServiceSettings, get_improvisor_settings
from genjazz.backends.improvisor.db_log import DbLogForwarder
from genjazz.services.metrics_log import DelimitedLog, iso_timestamp
from genjazz.services.native_jar import JarExecutionError, run_jar

logger = logging.getLogger(__name__)

IMPROVISOR_LOG_COLUMNS = ["timestamp", "time_ms", "data_used", "response_bytes"]


def _bad_request() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Missing or invalid chords string"})


def create_app(
    settings: ImprovisorServiceSettings | None = None,
    db_log: DbLogForwarder | None = None,
) -> FastAPI:
    settings = settings or get_improvisor_settings()
    db_log = db_log or DbLogForwarder(settings.db_service_url, settings.db_log_timeout_seconds)
    request_log = DelimitedLog(settings.improvisor_log_path, IMPROVISOR_LOG_COLUMNS, delimiter=";")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await db_log.close()

    app = FastAPI(title="GenJazz Improvisor Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.db_log = db_log
    app.state.request_log = request_log

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/generate-solo", tags=["generate"])
    async def generate_solo(request: Request) -> JSONResponse:
        """Improvise over ``chords`` in ``style`` at ``tempo`` (both optional)."""
        started = _time.monotonic()
        try:
            body = await request.json()
        except ValueError:
            return _bad_request()
        if not isinstance(body, dict):
            return _bad_request()

        chords = body.get("chords")
        if not isinstance(chords, str) or not chords.strip():
            return _bad_request()

        style = body.get("style") or settings.default_style
        tempo = body.get("tempo") or settings.default_tempo
        logged_request = {"chords": chords, "soloStyle": style, "soloTempo": tempo}

        try:
            output = await run_jar(
                settings.java_bin, settings.improvisor_jar, [chords, str(style), str(tempo)]
            )
        except JarExecutionError as exc:
            logger.error(f"Java process failed: {exc.stderr}")
            db_log.forward(logged_request, {"error": exc.stderr})
            return JSONResponse(
                status_code=500,
                content={"error": "Solo generation failed", "details": exc.stderr},
            )
        time_ms = int(round((_time.monotonic() - started) * 1000))

        midi_base64 = output.stdout.strip()
        if len(midi_base64) < settings.min_midi_base64_length:
            logger.error(f"Invalid Base64 returned: {output.stderr}")
            return JSONResponse(
                status_code=500,
                content={"error": "Invalid MIDI data returned from generator", "details": output.stderr},
            )

        try:
            request_log.ensure_header()
            request_log.append(
                [
                    iso_timestamp(),
                    time_ms,
                    f"{chords}|{style}|{tempo}",
                    len(midi_base64.encode("utf-8")),
                ]
            )
        except OSError as exc:
            logger.error(f"Failed to write CSV log: {exc}")

        db_log.forward(logged_request, {"time_ms": time_ms})
        return JSONResponse(content={"midi_base64": midi_base64, "time_ms": time_ms})

    return app


def run() -> None:
    import uvicorn

    settings = get_improvisor_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Generative improvisor microservice listening on port {settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
