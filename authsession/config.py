from __future__ import annotations

import os
from enum import Enum
from typing import Any, Optional, Tuple

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

from authsession.logging import get_logger
from authsession.public_paths import DEFAULT_PUBLIC_PATHS

logger = get_logger(__name__)

REFRESH_TOKEN_PATH = "/api/auth/refresh-token"


class StorageBackend(str, Enum):
    """Where the token pair and profile blobs are persisted."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


def env_field(default: Any, env: str, **kwargs):
    extra = kwargs.pop("json_schema_extra", {}) or {}
    extra = {**extra, "env": env}
    return Field(default, json_schema_extra=extra, **kwargs)


class Settings(BaseModel):
    """Runtime settings for the session client."""

    api_base_url: str = env_field(
        "", "API_BASE_URL", description="Backend origin; empty for same-origin relative URLs"
    )
    refresh_path: str = env_field(REFRESH_TOKEN_PATH, "AUTH_REFRESH_PATH")
    public_paths: Tuple[str, ...] = env_field(
        DEFAULT_PUBLIC_PATHS,
        "AUTH_PUBLIC_PATHS",
        description="Comma-separated path fragments that never carry the bearer header",
    )
    storage_backend: StorageBackend = env_field(StorageBackend.FILE, "SESSION_STORAGE")
    storage_root: str = env_field("~/.authsession", "SESSION_STORAGE_ROOT")
    redis_url: str = env_field("redis://localhost:6379/0", "REDIS_URL")
    session_namespace: str = env_field(
        "default",
        "SESSION_NAMESPACE",
        description="Separates independent sessions sharing one storage backend",
    )
    portal: Optional[str] = env_field(
        None,
        "SESSION_PORTAL",
        description="Fixed portal (admin, business, customer, default) for logout redirects",
    )
    request_timeout_seconds: float = env_field(30.0, "REQUEST_TIMEOUT_SECONDS", gt=0)
    connect_timeout_seconds: float = env_field(10.0, "CONNECT_TIMEOUT_SECONDS", gt=0)
    refresh_timeout_seconds: float = env_field(
        30.0,
        "REFRESH_TIMEOUT_SECONDS",
        gt=0,
        description="Upper bound on the refresh call; queued requests fail once it elapses",
    )

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_env(cls) -> "Settings":
        env_file_values = dotenv_values(".env")
        merged: dict[str, str] = {}
        for name, field in cls.model_fields.items():
            extra = field.json_schema_extra or {}
            env_key = extra.get("env") if isinstance(extra, dict) else None
            env_name = env_key or name.upper()
            if env_name in os.environ:
                merged[name] = os.environ[env_name]
            elif env_file_values.get(env_name) is not None:
                merged[name] = env_file_values[env_name]
        return cls(**merged)

    @field_validator("public_paths", mode="before")
    @classmethod
    def _split_public_paths(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        return value

    @field_validator("storage_backend")
    @classmethod
    def _validate_storage_backend(cls, value: StorageBackend) -> StorageBackend:
        return StorageBackend(value)

    @field_validator("portal")
    @classmethod
    def _validate_portal(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        normalized = value.strip().lower()
        if normalized not in {"admin", "business", "customer", "default"}:
            raise ValueError(f"unknown portal: {value}")
        return normalized

    @field_validator("refresh_path")
    @classmethod
    def _ensure_leading_slash(cls, value: str) -> str:
        if value.startswith(("http://", "https://", "/")):
            return value
        return f"/{value}"


def get_settings() -> Settings:
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = Settings.from_env()
        logger.debug(
            "settings_loaded",
            api_base_url=_settings_cache.api_base_url,
            storage_backend=_settings_cache.storage_backend.value,
        )
    return _settings_cache


_settings_cache: Settings | None = None


def reset_settings_cache() -> None:
    """Clear cached settings so future calls re-read the environment."""

    global _settings_cache
    _settings_cache = None
