"""Configuration module for environment-driven settings."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "0.1.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="allow",
        populate_by_name=True,
    )

    # Core service metadata
    project_name: str = Field(default="Chat Gateway")
    environment: Literal["local", "dev", "prod"] = Field(default="local")
    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    gateway_port: int = Field(default=8000)
    tool_service_port: int = Field(default=8001)

    # Completion provider
    fireworks_api_key: Optional[str] = Field(default=None, alias="FIREWORKS_API_KEY")
    upstream_base_url: str = Field(default="https://api.fireworks.ai/inference/v1")
    upstream_timeout_sec: float = Field(default=120)
    user_agent: str = Field(default=f"chat-gateway/{VERSION}")

    # Tool service
    tool_service_url: str = Field(default="http://localhost:8001/api/server")
    tool_service_timeout_sec: float = Field(default=10)

    # Search tool
    tavily_api_key: Optional[str] = Field(default=None, alias="TAVILY_API_KEY")
    tavily_url: str = Field(default="https://api.tavily.com/search")
    search_timeout_sec: float = Field(default=15)

    # Calculator tool
    max_expression_length: int = Field(default=256)


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""
    return Settings()
