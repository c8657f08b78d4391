"""Centralized configuration for capsule-search using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``CAPSULE_SEARCH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CAPSULE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Query limits
    default_max_results: int = Field(default=50, ge=1, description="Default result cap for indexed searches")
    default_capsule_max_results: int = Field(
        default=50, ge=1, description="Default capsule cap for cross-capsule searches"
    )
    max_query_length: int = Field(default=500, ge=1, description="Longest accepted query, in characters")

    # Presentation
    context_window: int = Field(default=100, ge=0, description="Characters of context on each side of a match")
    snippet_length: int = Field(default=150, ge=10, description="Length of per-section snippets")
    suggestion_limit: int = Field(default=5, ge=0, description="Maximum number of query suggestions")

    # Aggregator execution
    scoring_concurrency: int = Field(default=8, ge=1, description="Capsules scored in parallel")
    search_timeout_seconds: float | None = Field(
        default=None, gt=0, description="Deadline for one cross-capsule search; unset means no deadline"
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit JSON log records")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
