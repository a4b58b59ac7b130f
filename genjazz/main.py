"""
GenJazz Gateway API

FastAPI application that chains the chord and solo generators into one
``POST /api/generate-midi-random`` call.

Entry points:
    genjazz-gateway                                  (console script)
    uvicorn genjazz.main:create_app --factory --port 3000
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from genjazz.api.routes import generate, health
from genjazz.config import GatewaySettings, get_settings
from genjazz.core.pipeline import GenerationPipeline
from genjazz.services.backend_client import BackendClient
from genjazz.services.chords_stage import ChordsStage
from genjazz.services.metrics_log import MetricsRecorder
from genjazz.services.solo_stage import SoloStage

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_pipeline(
    settings: GatewaySettings,
    backend: BackendClient,
    recorder: MetricsRecorder | None,
) -> GenerationPipeline:
    """Wire the stages for one gateway process."""
    return GenerationPipeline(
        chords_stage=ChordsStage(backend),
        solo_stage=SoloStage(
            backend,
            default_style=settings.default_solo_style,
            default_tempo=settings.default_solo_tempo,
        ),
        recorder=recorder,
    )


def create_app(
    settings: GatewaySettings | None = None,
    backend: BackendClient | None = None,
    recorder: MetricsRecorder | None = None,
) -> FastAPI:
    """Application factory.

    Settings are resolved once here and passed down; tests inject their own
    settings, backend client or recorder.
    """
    settings = settings or get_settings()
    backend = backend or BackendClient(settings)
    recorder = recorder or MetricsRecorder(settings.metrics_log_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan handler."""
        logger.info(f"Starting {settings.app_name}")
        logger.info(f"Chords service: {settings.chords_service_url}")
        logger.info(f"Solo service: {settings.impro_service_url}")
        try:
            recorder.ensure_header()
        except OSError as exc:
            logger.warning(f"⚠️ Metrics log {recorder.path} not writable: {exc}")

        yield

        logger.info("Shutting down...")
        await backend.close()

    app = FastAPI(
        title=settings.app_name,
        description="Random jazz chords plus an improvised solo, in one call.",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.backend = backend
    app.state.pipeline = build_pipeline(settings, backend, recorder)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(generate.router, tags=["generate"])
    app.include_router(health.router, tags=["health"])
    return app


def run() -> None:
    """Console entry point: serve the gateway with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.debug)
    logger.info(f"API Gateway listening on port {settings.port}")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
