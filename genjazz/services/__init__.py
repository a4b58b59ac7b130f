"""Backend client, pipeline stages and request logs for the gateway."""
from __future__ import annotations

from genjazz.services.backend_client import BackendCallResult, BackendClient
from genjazz.services.chords_stage import ChordsStage
from genjazz.services.metrics_log import MetricsRecord, MetricsRecorder
from genjazz.services.solo_stage import SoloStage

__all__ = [
    "BackendCallResult",
    "BackendClient",
    "ChordsStage",
    "MetricsRecord",
    "MetricsRecorder",
    "SoloStage",
]
