"""Runner configuration via environment variables."""

from pydantic_settings import BaseSettings

from loadengine.engine.config import (
    DEFAULT_BREAKING_POINT_ERROR_RATE,
    DEFAULT_ENDURANCE_PACING_MS,
)


class Settings(BaseSettings):
    app_name: str = "loadengine"
    log_level: str = "INFO"
    log_json: bool = False

    # Target for the built-in HTTP operation
    base_url: str = "http://localhost:8000"
    http_timeout_seconds: float = 30.0

    breaking_point_error_rate: float = DEFAULT_BREAKING_POINT_ERROR_RATE
    endurance_pacing_ms: float = DEFAULT_ENDURANCE_PACING_MS

    model_config = {"env_prefix": "LOADENGINE_", "env_file": ".env", "extra": "ignore"}
