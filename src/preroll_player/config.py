"""
Player Configuration Module

Runtime configuration consumed by the player components. Values normally come
from Settings (YAML + environment) through PlayerConfig.from_settings().
"""

from dataclasses import dataclass, field
from enum import Enum

from .settings import Settings, get_settings


class TimeMode(str, Enum):
    """Time source for ad timers."""

    REAL = "real"  # Wall-clock timers
    SIMULATED = "simulated"  # Virtual clock advanced by the caller


@dataclass
class PlayerConfig:
    """
    Configuration for a PrerollPlayer instance.

    Attributes:
        ad_endpoint: VAST manifest endpoint
        ad_zone_id: Zone identifier sent as the idzone query parameter
        ad_timeout_sec: Time budget for the manifest request
        skip_delay_sec: Seconds from ad start until skip is offered
        placeholder_grace_sec: Seconds the placeholder keeps counting below
            zero before dismissing itself
        tick_sec: Countdown tick interval
        cdn_domains: Hosts that honour the quality query parameter
        default_quality: Quality used until the network observer suggests one
        time_mode: Timer source

    Examples:
        >>> config = PlayerConfig(ad_timeout_sec=1.5)
        >>> config = PlayerConfig.from_settings()
    """

    ad_endpoint: str = "https://s.magsrv.com/v1/vast.php"
    ad_zone_id: str = "5660526"
    ad_timeout_sec: float = 3.0
    skip_delay_sec: int = 5
    placeholder_grace_sec: int = 5
    tick_sec: float = 1.0
    cdn_domains: tuple[str, ...] = field(default_factory=lambda: ("bunnycdn.com", "b-cdn.net"))
    default_quality: str = "auto"
    time_mode: TimeMode = TimeMode.REAL

    @property
    def ad_url(self) -> str:
        """Manifest URL including the zone parameter."""
        separator = "&" if "?" in self.ad_endpoint else "?"
        return f"{self.ad_endpoint}{separator}idzone={self.ad_zone_id}"

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides) -> "PlayerConfig":
        """Build a config from application settings.

        Args:
            settings: Settings instance (cached settings when None)
            **overrides: Field values that take precedence

        Returns:
            PlayerConfig
        """
        settings = settings or get_settings()
        values = {
            "ad_endpoint": settings.ad.endpoint,
            "ad_zone_id": settings.ad.zone_id,
            "ad_timeout_sec": settings.ad.timeout_sec,
            "skip_delay_sec": settings.ad.skip_delay_sec,
            "placeholder_grace_sec": settings.ad.placeholder_grace_sec,
            "tick_sec": settings.ad.tick_sec,
            "cdn_domains": tuple(settings.media.cdn_domains),
            "default_quality": settings.media.default_quality,
        }
        values.update(overrides)
        return cls(**values)


__all__ = ["PlayerConfig", "TimeMode"]
