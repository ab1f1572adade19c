"""Lightweight settings layer wrapping environment variables with validation.

Does not replace AppConfig; augments it. Use get_settings() where env-driven behavior
is needed (e.g., toggling JSON logging, pointing the UI at a remote API).
"""
from __future__ import annotations
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment settings, read from ``PDBVIEWER_*`` variables."""

    model_config = SettingsConfigDict(env_prefix='PDBVIEWER_', case_sensitive=False, extra='ignore')

    log_level: str = Field("INFO")
    json_logging: bool = Field(False)
    # Base URL the Streamlit UI uses to reach the retrieval proxy
    api_base_url: str = Field("http://localhost:8000")
    api_timeout_seconds: float = Field(30.0)
    api_host: str = Field("0.0.0.0")
    api_port: int = Field(8000)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    # API compression
    api_enable_gzip: bool = Field(False)
    api_gzip_min_size: int = Field(1024)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
