"""Chords service configuration.

Defaults work for local development with the jar in the working directory.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class ChordsServiceSettings(BaseSettings):
    """Runtime configuration for the chord progression service."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3002
    java_bin: str = "java"
    gen_chords_jar: str = "./GenJazzChords.jar"
    chords_log_path: str = "chords_request_log.csv"


@lru_cache()
def get_chords_settings() -> ChordsServiceSettings:
    return ChordsServiceSettings()
