"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Cache TTLs are positive

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Cache TTLs are settings, not constants of the cache: the caller picks per request type
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://thumbnail:thumbnail@db:5432/thumbnail_ai"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic (text suggestions)
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 60
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 30_000
    text_model: str = "claude-haiku-4-5"
    text_max_tokens: int = 100
    text_temperature: float = 0.8

    # Image generation service
    image_service_url: str = "http://localhost:8080/v1/images"
    image_service_api_key: str = ""
    image_service_timeout_seconds: float = 120.0

    # Remote trial authority (empty = in-process SQL authority)
    trial_authority_url: str = ""
    trial_authority_timeout_seconds: float = 5.0

    # Generation cache
    text_cache_ttl_hours: float = 24
    image_cache_ttl_hours: float = 168

    @field_validator("text_cache_ttl_hours", "image_cache_ttl_hours")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    # Canvas
    canvas_width: int = 1280
    canvas_height: int = 720

    # API
    cors_origins: list[str] = ["http://localhost:3000"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
