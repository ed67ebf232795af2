"""
Settings Management Module

Provides pydantic-based configuration management with:
- YAML configuration file loading
- Environment variable overrides (PREROLL_*)
- Multi-environment support (dev, prod, test)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdSettings(BaseModel):
    """Ad manifest and countdown settings."""

    endpoint: str = "https://s.magsrv.com/v1/vast.php"
    zone_id: str = "5660526"
    timeout_sec: float = 3.0
    skip_delay_sec: int = 5
    placeholder_grace_sec: int = 5
    tick_sec: float = 1.0


class MediaSettings(BaseModel):
    """Main media settings."""

    cdn_domains: list[str] = Field(default_factory=lambda: ["bunnycdn.com", "b-cdn.net"])
    default_quality: str = "auto"


class HttpSettings(BaseModel):
    """HTTP client configuration settings."""

    timeout: float = 30.0
    max_connections: int = 20
    max_keepalive_connections: int = 10
    keepalive_expiry: float = 5.0
    follow_redirects: bool = True
    verify_ssl: bool = True


class Settings(BaseSettings):
    """
    Main application settings with multi-environment support.

    Configuration hierarchy (lowest to highest precedence):
    1. settings/config.yaml (base)
    2. settings/config.{environment}.yaml (environment-specific)
    3. Environment variables (PREROLL_*)

    Examples:
        >>> settings = get_settings()
        >>> settings.ad.timeout_sec
        3.0

        Override from the environment:
        $ PREROLL_AD__ZONE_ID=1234 preroll-player fetch-ad
    """

    model_config = SettingsConfigDict(
        env_prefix="PREROLL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="allow",
    )

    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False

    ad: AdSettings = Field(default_factory=AdSettings)
    media: MediaSettings = Field(default_factory=MediaSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats values passed in from YAML
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def load_from_yaml(cls, config_path: Path | None = None) -> "Settings":
        """
        Load settings from YAML configuration file.

        Args:
            config_path: Path to config file (default: settings/config.yaml
                in the current working directory)

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = Path(os.getenv("PREROLL_CONFIG", "settings/config.yaml"))

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

        env = os.getenv("PREROLL_ENVIRONMENT", config_data.get("environment", "development"))
        env_config_path = config_path.parent / f"config.{env}.yaml"

        if env_config_path.exists():
            with open(env_config_path) as f:
                env_config = yaml.safe_load(f) or {}
                config_data = cls._deep_merge(config_data, env_config)

        return cls(**config_data)

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Deep merge two dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = Settings._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def to_dict(self) -> dict[str, Any]:
        """Dump settings as a plain dictionary."""
        return self.model_dump()


@lru_cache
def get_settings(config_path: Path | None = None) -> Settings:
    """
    Get cached settings instance.

    Args:
        config_path: Optional path to config file

    Returns:
        Settings instance
    """
    return Settings.load_from_yaml(config_path)


def reload_settings() -> Settings:
    """Reload settings by clearing cache."""
    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "Settings",
    "AdSettings",
    "MediaSettings",
    "HttpSettings",
    "get_settings",
    "reload_settings",
]
