from __future__ import annotations

"""
Configuration loader for the asset registry service.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Exposes a cached `load_config()` accessor.
- Bridges into the core with `Settings.to_limits()` so the registry itself
  never imports pydantic.

Environment variables (prefix ASSET_REGISTRY_):
    ADMINISTRATOR        (str, default "admin")      : sole minting/admin identity
    DB_URI               (str, default "memory://")  : KV store URI
    MAX_BULK             (int, default 50)           : bulk-mint bound
    METADATA_MAX_LEN     (int, default 256)          : metadata length bound, 1..256
    BULK_MODE            ("partial"|"atomic")        : bulk-mint failure policy
    CALLER_HEADER        (str, default "X-Caller")   : trusted identity header
    LOG_LEVEL            (str, default "INFO")
    LOG_FORMAT           ("json"|"console")
    HOST / PORT          (str/int)                   : bind address for `serve`
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .limits import (BULK_PARTIAL, DEFAULT_MAX_BULK, DEFAULT_METADATA_MAX_LEN,
                     RegistryLimits)


class Settings(BaseSettings):
    # Registry core
    administrator: str = Field("admin", description="Administrator identity (immutable per store)")
    db_uri: str = Field("memory://", description="KV store URI (memory:// or sqlite:///path)")
    max_bulk: int = Field(DEFAULT_MAX_BULK, ge=1, le=10_000, description="Bulk-mint batch bound")
    metadata_max_len: int = Field(
        DEFAULT_METADATA_MAX_LEN,
        ge=1,
        le=DEFAULT_METADATA_MAX_LEN,
        description="Metadata length bound (may only be tightened)",
    )
    bulk_mode: Literal["partial", "atomic"] = Field(
        BULK_PARTIAL, description="Bulk-mint policy for invalid items"
    )

    # Service surface
    caller_header: str = Field("X-Caller", description="Header carrying the trusted caller identity")
    host: str = Field("127.0.0.1", description="Bind address for the HTTP server")
    port: int = Field(8080, ge=1, le=65_535, description="Bind port for the HTTP server")

    # Logging
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: Literal["json", "console"] = Field("json", description="Log renderer")

    model_config = SettingsConfigDict(
        env_prefix="ASSET_REGISTRY_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    @field_validator("administrator", "caller_header", mode="before")
    @classmethod
    def _strip_non_empty(cls, v):
        if v is None:
            raise ValueError("value must be non-empty")
        s = str(v).strip()
        if not s:
            raise ValueError("value must be non-empty")
        return s

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return str(v or "INFO").strip().upper()

    @field_validator("bulk_mode", "log_format", mode="before")
    @classmethod
    def _lower(cls, v):
        return str(v).strip().lower() if v is not None else v

    # Helper builders --------------------------------------------------------
    def to_limits(self) -> RegistryLimits:
        """Convert to the core RegistryLimits dataclass."""
        return RegistryLimits(
            max_bulk=self.max_bulk,
            metadata_max_len=self.metadata_max_len,
            bulk_mode=self.bulk_mode,
        )


@lru_cache(maxsize=1)
def load_config() -> Settings:
    """Return cached settings instance."""
    return Settings()  # pydantic-settings reads env + .env


__all__ = ["Settings", "load_config"]
