"""
Configuration management using pydantic-settings.

Loads cache settings from environment variables and .env files, or from the
settings payload a host bootstrap hands over (siteId, networkId, isMultisite,
i18n.noImplementationSet).
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sitecache.exceptions import ConfigurationError


class CacheSettings(BaseSettings):
    """Cache settings loaded from environment variables.

    Optional:
        SITE_ID: Site the cache is scoped to at startup
        NETWORK_ID: Network the cache is scoped to at startup
        IS_MULTISITE: Whether site/network switching is enabled
        NO_IMPLEMENTATION_SET: Message logged when no backend is active
        STORAGE_NAMESPACE: Key prefix owned by the persistent backend
        STORAGE_PATH: SQLite file backing the persistent backend
        LOG_LEVEL: Logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Scope
    SITE_ID: int = Field(default=1, ge=1, description="Initial site ID")
    NETWORK_ID: int = Field(default=1, ge=1, description="Initial network ID")
    IS_MULTISITE: bool = Field(
        default=False, description="Enable site/network switching"
    )

    # i18n
    NO_IMPLEMENTATION_SET: str = Field(
        default="No cache implementation set.",
        description="Message logged when no cache backend is active",
    )

    # Persistent storage
    STORAGE_NAMESPACE: str = Field(
        default="siteCache",
        min_length=1,
        description="Prefix for every key the persistent backend writes",
    )
    STORAGE_PATH: Path = Field(
        default=Path(".cache/sitecache.db"),
        description="SQLite database file for persistent entries",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @property
    def site_id(self) -> int:
        """Get initial site ID (lowercase alias)."""
        return self.SITE_ID

    @property
    def network_id(self) -> int:
        """Get initial network ID (lowercase alias)."""
        return self.NETWORK_ID

    @property
    def is_multisite(self) -> bool:
        """Get multisite flag (lowercase alias)."""
        return self.IS_MULTISITE

    @property
    def i18n(self) -> dict[str, str]:
        """Return translatable messages in the host payload shape."""
        return {"noImplementationSet": self.NO_IMPLEMENTATION_SET}

    @field_validator("STORAGE_NAMESPACE")
    @classmethod
    def validate_storage_namespace(cls, v: str) -> str:
        """The namespace is joined to groups with ':' so it must not contain one."""
        if ":" in v:
            raise ValueError("STORAGE_NAMESPACE must not contain ':'")
        return v

    @classmethod
    def from_host(cls, payload: Mapping[str, Any], **overrides: Any) -> CacheSettings:
        """Build settings from a host bootstrap payload.

        Args:
            payload: Mapping shaped like
                ``{"siteId": 1, "networkId": 1, "isMultisite": False,
                "i18n": {"noImplementationSet": "..."}}``. Missing keys fall
                back to the environment/defaults.
            **overrides: Extra field values (e.g. STORAGE_PATH).

        Returns:
            Validated CacheSettings.

        Raises:
            ConfigurationError: If the payload is malformed.
        """
        if not isinstance(payload, Mapping):
            raise ConfigurationError(
                "Host cache settings must be a mapping",
                context={"type": type(payload).__name__},
            )

        values: dict[str, Any] = {}
        if "siteId" in payload:
            values["SITE_ID"] = payload["siteId"]
        if "networkId" in payload:
            values["NETWORK_ID"] = payload["networkId"]
        if "isMultisite" in payload:
            values["IS_MULTISITE"] = payload["isMultisite"]

        i18n = payload.get("i18n") or {}
        if not isinstance(i18n, Mapping):
            raise ConfigurationError(
                "Host cache settings 'i18n' must be a mapping",
                context={"type": type(i18n).__name__},
            )
        if "noImplementationSet" in i18n:
            values["NO_IMPLEMENTATION_SET"] = i18n["noImplementationSet"]

        values.update(overrides)

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid host cache settings",
                context={"errors": e.errors(include_url=False)},
            ) from e

    def ensure_directories(self) -> None:
        """Create the storage directory if it doesn't exist."""
        self.STORAGE_PATH.parent.mkdir(parents=True, exist_ok=True)

    def display(self) -> dict[str, str | int | bool]:
        """Return settings as plain values for display."""
        return {
            "SITE_ID": self.SITE_ID,
            "NETWORK_ID": self.NETWORK_ID,
            "IS_MULTISITE": self.IS_MULTISITE,
            "NO_IMPLEMENTATION_SET": self.NO_IMPLEMENTATION_SET,
            "STORAGE_NAMESPACE": self.STORAGE_NAMESPACE,
            "STORAGE_PATH": str(self.STORAGE_PATH),
            "LOG_LEVEL": self.LOG_LEVEL,
        }


@lru_cache
def get_settings() -> CacheSettings:
    """Get cached settings singleton.

    Returns:
        CacheSettings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return CacheSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
