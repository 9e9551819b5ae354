"""
Harness configuration using pydantic-settings.
All config is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

LOCK_TIMEOUT_MARKER = "예매 처리 중입니다"


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Ticket Consistency Harness"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Target service
    BASE_URL: str = "http://localhost:8080"
    TICKET_ID: int = 1
    REQUEST_TIMEOUT_SECONDS: float = 60.0

    # Strategy selection
    LOCK_TYPE: Optional[str] = None
    DEFAULT_LOCK_TYPE: str = "optimistic-lock"
    FALLBACK_LOCK_TYPE: str = "row-lock"
    LOCK_TIMEOUT_MARKER: str = LOCK_TIMEOUT_MARKER

    # Load profile
    PRESET: Optional[str] = None
    PROFILE: str = "constant"
    VUS: int = 100
    ITERATIONS: int = 1000
    DURATION: str = "30s"
    STAGES: str = "10s:500,20s:2000,20s:2000,10s:0"
    RAMP: bool = False
    RAMP_INTERVAL_SECONDS: float = 1.0
    THRESHOLD_P95_MS: Optional[float] = None
    THRESHOLD_ERROR_RATE: Optional[float] = None

    # Settling wait before the final snapshot
    SETTLE_SECONDS: Optional[float] = None
    SETTLE_MODE: str = "fixed"
    SETTLE_POLL_INTERVAL: float = 0.5

    # Prometheus textfile output
    METRICS_FILE: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    return Settings()
