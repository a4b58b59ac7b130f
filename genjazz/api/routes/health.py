"""Health check endpoint."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

from genjazz.config import GatewaySettings
from genjazz.contracts.gateway_types import HealthServicesDict

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Liveness probe; also reports which backends this gateway fronts."""
    settings: GatewaySettings = request.app.state.settings
    return {
        "status": "ok",
        "services": HealthServicesDict(
            chords=settings.chords_service_url,
            solo=settings.impro_service_url,
        ),
    }
