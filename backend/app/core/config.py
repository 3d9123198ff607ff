"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "ModelPath"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENV: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = Field(default=1, ge=1)

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./modelpath.db"
    DATABASE_ECHO: bool = False

    # Embeddings
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE_URL: str | None = None
    EMBEDDING_MODEL: str = "text-embedding-3-small"
    EMBEDDING_DIMENSIONS: int | None = None
    EMBEDDING_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    EMBEDDING_CACHE_SIZE: int = Field(default=100, ge=0)

    # Matching
    # Candidates below this cosine similarity only fill a roadmap up to five steps
    MATCH_SIMILARITY_FLOOR: float = Field(default=0.3, ge=-1.0, le=1.0)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
