"""Pydantic schemas for run configuration."""
from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator


ENV_PREFIX = "PAYFLOW_"


class ConfigError(Exception):
    """Configuration, credentials or fixtures could not be loaded."""


class Settings(BaseModel):
    """Where the backend lives and how to reach it."""
    base_url: str = Field(..., description="Base URL of the payments API")
    admin_api_key: str = Field(..., description="Admin API key used for account setup")
    connector_id: str = Field(..., description="Connector under test, e.g. stripe")
    connector_auth_file_path: Path | None = Field(None, description="JSON file with connector credentials")
    fixtures_path: Path | None = Field(None, description="YAML file with expected responses")
    request_timeout: float = Field(30, gt=0)
    max_retries: int = Field(0, ge=0)
    retry_backoff: float = Field(1.0, ge=0, description="Seconds before the first retry, doubled per retry")

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings from environment: {e}") from e
