"""
Configuration and settings for the CareFever backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"), env_file_encoding="utf-8", extra="ignore"
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    log_level: str = Field(default="INFO")

    # Firestore (service-account JSON; falls back to application default credentials)
    google_application_credentials: Optional[str] = Field(default=None)
    firebase_project_id: Optional[str] = Field(default=None)

    # Clerk webhooks are signed with svix using this secret ("whsec_...")
    clerk_webhook_secret: Optional[str] = Field(default=None)

    # Front-end; CORS falls back to the front-end origin, then to any origin
    frontend_base_url: Optional[str] = Field(default=None)
    cors_allow_origins: Optional[list[str]] = Field(default=None)

    # Vapi voice assistant
    vapi_api_key: Optional[str] = Field(default=None)
    vapi_assistant_id: Optional[str] = Field(default=None)
    vapi_base_url: str = Field(default="https://api.vapi.ai")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    def allowed_origins(self) -> list[str]:
        if self.cors_allow_origins:
            return self.cors_allow_origins
        if self.frontend_base_url:
            return [self.frontend_base_url.rstrip("/")]
        return ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
