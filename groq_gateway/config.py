"""Configuration utilities for the Groq gateway service."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_BASE_URL = "https://api.groq.com"


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    groq_api_key: Optional[str] = None
    groq_model: Optional[str] = None
    groq_base_url: str = DEFAULT_BASE_URL
    groq_timeout_seconds: float = Field(default=30.0, gt=0)
    groq_max_retries: int = Field(default=3, ge=0)
    retry_client_errors: bool = True
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])
    service_name: str = "groq-gateway"
    tracing_enabled: bool = False

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        data = {
            "groq_api_key": os.getenv("GROQ_GATEWAY_API_KEY")
            or os.getenv("GROQ_API_KEY"),
            "groq_model": os.getenv("GROQ_GATEWAY_MODEL") or os.getenv("GROQ_API_MODEL"),
            "groq_base_url": os.getenv("GROQ_GATEWAY_BASE_URL", DEFAULT_BASE_URL),
            "groq_timeout_seconds": os.getenv("GROQ_GATEWAY_TIMEOUT", "30"),
            "groq_max_retries": os.getenv("GROQ_GATEWAY_MAX_RETRIES", "3"),
            "retry_client_errors": os.getenv("GROQ_GATEWAY_RETRY_CLIENT_ERRORS", "true"),
            "allowed_origins": os.getenv("GROQ_GATEWAY_ALLOWED_ORIGINS", "*"),
            "service_name": os.getenv("GROQ_GATEWAY_SERVICE_NAME", "groq-gateway"),
            "tracing_enabled": os.getenv("GROQ_GATEWAY_TRACING_ENABLED", "false"),
        }
        return cls(**data)


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    settings = Settings.from_env()
    if not settings.groq_api_key:
        raise ValueError(
            "Groq API key must be provided via GROQ_GATEWAY_API_KEY or GROQ_API_KEY"
        )
    if not settings.groq_model:
        raise ValueError(
            "Groq model must be provided via GROQ_GATEWAY_MODEL or GROQ_API_MODEL"
        )
    return settings
