"""Environment-driven settings for the server, the CLI and the store adapters.

Values come from process environment variables or a local ``.env`` file.
List settings accept a comma separated string.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import AnyUrl, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Friends directory configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # Application
    API_TITLE: str = "Friends Directory"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production)$")
    LOG_LEVEL: str = "INFO"

    # HTTP serving
    HOST: str = "127.0.0.1"
    PORT: PositiveInt = 8081
    WORKERS: PositiveInt = 4
    SERVER_HEADER: str = "Friends"
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])
    GZIP_MINIMUM_SIZE: int = 500

    # Graph store
    STORE_BACKEND: str = Field("neo4j", pattern=r"^(neo4j|memory)$")
    NEO4J_URI: AnyUrl = Field("neo4j://localhost:7687")
    NEO4J_USER: str = "neo4j"
    NEO4J_PASSWORD: str = "password"
    NEO4J_DATABASE: Optional[str] = None
    QUERY_TIMEOUT_SECONDS: float = Field(30.0, gt=0)

    # Bootstrap
    RESET_ON_STARTUP: bool = False
    SEED_PEOPLE: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # Tracing
    TRACING_ENABLED: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[AnyUrl] = None
    OTEL_EXPORTER_OTLP_HEADERS: Optional[str] = None

    @field_validator("ALLOWED_ORIGINS", "SEED_PEOPLE", mode="before")
    def _split_comma_list(cls, value: str | List[str] | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            parts = (part.strip() for part in value.split(","))
            return [part for part in parts if part]
        return value


@lru_cache()
def get_settings() -> Settings:
    """Settings are read once per process."""

    return Settings()


# Shared instance imported by the app, the CLI and the tests.
settings = get_settings()
