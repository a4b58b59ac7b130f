"""Improvisor service configuration."""
from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from genjazz.config import DEFAULT_SOLO_STYLE, DEFAULT_SOLO_TEMPO


class ImprovisorServiceSettings(BaseSettings):
    """Runtime configuration for the solo improvisor service."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 4000
    java_bin: str = "java"
    improvisor_jar: str = "./GenJazzSolos.jar"
    improvisor_log_path: str = "improvisor_requests_log.csv"

    # Optional request/response sink; failures there are ignored.
    db_service_url: str = "http://localhost:3001"
    db_log_timeout_seconds: float = 5.0

    default_style: str = DEFAULT_SOLO_STYLE
    default_tempo: int = DEFAULT_SOLO_TEMPO

    # Shorter stdout than this cannot be a MIDI file.
    min_midi_base64_length: int = 20


@lru_cache()
def get_improvisor_settings() -> ImprovisorServiceSettings:
    return ImprovisorServiceSettings()
