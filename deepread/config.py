"""
Settings for Deepread, read from environment variables and an optional .env file.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database (on-device store by default)
    database_url: str = "sqlite+aiosqlite:///./deepread.db"

    # Security
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 43200  # 30 days

    # OpenAI (primer generation)
    openai_api_key: str = ""
    primer_model: str = "gpt-4.1"
    primer_max_tokens: int = 2000
    primer_temperature: float = 0.7

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Deepread"
    version: str = "1.0.0"

    # Startup maintenance (migration, duplicate cleanup, cache warm-up)
    maintenance_enabled: bool = True

    # Requests slower than this are logged as warnings
    slow_request_ms: int = 1000

    # Browser origins allowed by CORS (comma-separated in the environment)
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000"

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
