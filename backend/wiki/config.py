"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Components receive a Settings instance at construction (no global reads)
    - get_settings() is cached (lru_cache) — used only by process entry points
    - front_instances and service_consumers are always >= 1

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - SQLite default: works out-of-the-box for local runs, PostgreSQL via DATABASE_URL
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Wiki settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # HTTP front
    http_host: str = "0.0.0.0"
    http_port: int = Field(8080, ge=0, le=65535)
    front_instances: int = Field(2, ge=1)

    # Store
    database_url: str = "sqlite+aiosqlite:///wiki.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = Field(10, ge=1)
    database_max_overflow: int = Field(5, ge=0)

    # Page service
    db_queue_address: str = "wikidb.queue"
    service_consumers: int = Field(1, ge=1)
    service_transport: Literal["bus", "local"] = "bus"
    service_timeout_seconds: float = Field(5.0, gt=0)

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
