"""
GenJazz Gateway Configuration

Environment-based configuration for the gateway.  Built once at process
start and handed to ``create_app``; request handling never reads the
environment directly.
"""
import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Per-call budget for each backend request (seconds).
DEFAULT_BACKEND_TIMEOUT: float = 10.0

# Defaults the solo generator itself falls back to; applied at the gateway's
# solo stage so the metrics row reflects what was actually requested.
DEFAULT_SOLO_STYLE: str = "John Coltrane"
DEFAULT_SOLO_TEMPO: int = 160


class GatewaySettings(BaseSettings):
    """Gateway settings loaded from environment variables.

    No env prefix: the deployment sets ``PORT``, ``CHORDS_SERVICE_URL`` and
    ``IMPRO_SERVICE_URL`` directly.
    """

    app_name: str = "GenJazz Gateway"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Backends (required, no sensible default)
    chords_service_url: str
    impro_service_url: str
    backend_timeout_seconds: float = DEFAULT_BACKEND_TIMEOUT

    # Solo defaults when the client omits style/tempo
    default_solo_style: str = DEFAULT_SOLO_STYLE
    default_solo_tempo: int = DEFAULT_SOLO_TEMPO

    # Per-request metrics log (semicolon-separated, one row per request)
    metrics_log_path: str = "gateway_requests_log.csv"

    # The gateway has always answered any origin; narrow in production.
    cors_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    @field_validator("chords_service_url", "impro_service_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("backend base URL must not be empty")
        return v.rstrip("/")

    @field_validator("backend_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("backend_timeout_seconds must be positive")
        return v


@lru_cache()
def get_settings() -> GatewaySettings:
    """Get cached settings instance."""
    settings = GatewaySettings()  # type: ignore[call-arg]  # required fields come from env
    logging.getLogger(__name__).debug(
        "Loaded settings: chords=%s solo=%s", settings.chords_service_url, settings.impro_service_url
    )
    return settings
