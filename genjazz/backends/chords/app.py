"""
Chords Service

Runs the GenJazz chords generator once per request and returns its JSON
result unchanged.  Every successful generation is appended to a
comma-separated log (timestamp, key, structure, time, size).

Entry point: ``genjazz-chords`` or
``uvicorn genjazz.backends.chords.app:create_app --factory --port 3002``
"""
from __future__ import annotations

import logging
import time as _time

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from genjazz.backends.chords.config import ChordsServiceSettings, get_chords_settings
from genjazz.services.backend_client import json_size_bytes
from genjazz.services.metrics_log import DelimitedLog, iso_timestamp
from genjazz.services.native_jar import JarExecutionError, MalformedJarOutput, parse_json_output, run_jar

logger = logging.getLogger(__name__)

CHORDS_LOG_COLUMNS = ["timestamp", "key", "structure", "time_ms", "size_bytes"]


def create_app(settings: ChordsServiceSettings | None = None) -> FastAPI:
    settings = settings or get_chords_settings()
    request_log = DelimitedLog(settings.chords_log_path, CHORDS_LOG_COLUMNS, delimiter=",")

    app = FastAPI(title="GenJazz Chords Service")
    app.state.settings = settings
    app.state.request_log = request_log

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/generate/{key}/{structure}/{modulation}", tags=["generate"])
    async def generate_chords(key: str, structure: str, modulation: str) -> JSONResponse:
        """Generate a progression for the given key/structure/modulation selectors."""
        started = _time.monotonic()
        try:
            output = await run_jar(settings.java_bin, settings.gen_chords_jar, [key, structure, modulation])
            result = parse_json_output(output)
        except (JarExecutionError, MalformedJarOutput) as exc:
            logger.error(f"❌ Chords generation failed: {exc}")
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to generate chords", "details": str(exc)},
            )
        time_ms = int(round((_time.monotonic() - started) * 1000))
        size_bytes = json_size_bytes(result)

        fields = result if isinstance(result, dict) else {}
        try:
            request_log.ensure_header()
            request_log.append(
                [iso_timestamp(), fields.get("key"), fields.get("structure"), time_ms, size_bytes]
            )
        except OSError as exc:
            logger.error(f"Failed to write log: {exc}")

        return JSONResponse(content=result)

    return app


def run() -> None:
    import uvicorn

    settings = get_chords_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Generative chords microservice listening on port {settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
