"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Identity Reconciler"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Search index (Elasticsearch)
    search_index_url: str = Field(default="http://localhost:9200")
    search_index_name: str = Field(default="constellations")
    search_timeout_seconds: float = Field(default=5.0, gt=0.0)
    search_retry_attempts: int = Field(
        default=1,
        ge=1,
        description="Total attempts per search request (1 disables retries)",
    )

    # Identity store (Turso)
    turso_database_url: str | None = Field(default=None)
    turso_auth_token: str | None = Field(default=None)

    # Reconciliation
    reconcile_num_results: int = Field(default=25, ge=1)
    reconcile_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Deadline shared by all stages of one reconcile call",
    )
    reconcile_weighting: str = Field(
        default="sum",
        description="Weighting function name: sum or exact_link_override",
    )
    reconcile_exact_link: bool = Field(
        default=True,
        description="Run the exact alternate-identifier stage against the store",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
