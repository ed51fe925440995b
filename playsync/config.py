from functools import lru_cache
from typing import Literal
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration settings"""

    # App
    environment: Literal["development", "production"] = "development"
    frontend_url: str = "http://localhost:5173"
    debug: bool = False

    # API
    api_prefix: str = "/api"

    # Session storage
    session_store_backend: Literal["memory", "supabase"] = "memory"
    supabase_url: str | None = None
    supabase_key: str | None = None

    # Playback defaults
    default_owner_id: str = "1"
    default_volume: float = Field(default=0.7, ge=0.0, le=1.0)

    # Security
    secret_key: str = "change-me"

    # Logging
    log_level: str = "INFO"

    @property
    def allowed_cors_origins(self) -> list[str]:
        """CORS allowed origins"""
        return [self.frontend_url]

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()
