"""Quality options, media URL resolution and data usage estimation."""

from dataclasses import dataclass
from enum import Enum

from .exceptions import UnknownQualityError
from .log_config import get_context_logger
from .network import ConnectionSpeed
from .url_helpers import build_url_preserving_unicode, host_matches


AUTO_QUALITY = "auto"

DEFAULT_CDN_DOMAINS: tuple[str, ...] = ("bunnycdn.com", "b-cdn.net")

logger = get_context_logger("quality")


@dataclass(frozen=True)
class QualityOption:
    """A selectable rendition."""

    label: str
    value: str
    bandwidth_kbps: int


QUALITY_OPTIONS: tuple[QualityOption, ...] = (
    QualityOption("Auto", AUTO_QUALITY, 0),
    QualityOption("240p", "240p", 300),
    QualityOption("360p", "360p", 500),
    QualityOption("480p", "480p", 1000),
    QualityOption("720p", "720p", 2500),
    QualityOption("1080p", "1080p", 5000),
)


class PreloadPolicy(str, Enum):
    """Media preload hint."""

    NONE = "none"
    METADATA = "metadata"
    AUTO = "auto"


_PRELOAD_BY_SPEED = {
    ConnectionSpeed.SLOW: PreloadPolicy.NONE,
    ConnectionSpeed.MEDIUM: PreloadPolicy.METADATA,
    ConnectionSpeed.FAST: PreloadPolicy.METADATA,
}

_QUALITY_BY_SPEED = {
    ConnectionSpeed.SLOW: "240p",
    ConnectionSpeed.MEDIUM: "360p",
    ConnectionSpeed.FAST: "720p",
}


def find_quality(value: str) -> QualityOption:
    """Look up a quality option by value.

    Raises:
        UnknownQualityError: If no option has that value
    """
    for option in QUALITY_OPTIONS:
        if option.value == value:
            return option
    raise UnknownQualityError(f"Unknown quality: {value!r}", quality=value)


def resolve_url(
    base_url: str,
    quality: str,
    cdn_domains: tuple[str, ...] | list[str] = DEFAULT_CDN_DOMAINS,
) -> str:
    """Derive the media URL for a quality.

    ``auto`` always yields the base URL. Other values add a ``quality`` query
    parameter, but only for hosts on the CDN; any other host gets the base
    URL back and the selection has no server-side effect.

    Args:
        base_url: Source URL as provided by the embedder
        quality: Quality value (e.g. "480p")
        cdn_domains: Hosts that understand the quality parameter

    Returns:
        Resolved media URL
    """
    if quality == AUTO_QUALITY:
        return base_url

    if not host_matches(base_url, cdn_domains):
        logger.debug("Quality parameter not supported by host", url=base_url, quality=quality)
        return base_url

    return build_url_preserving_unicode(base_url, {"quality": quality})


def preload_policy(speed: ConnectionSpeed) -> PreloadPolicy:
    """Preload hint for a connection class."""
    return _PRELOAD_BY_SPEED.get(ConnectionSpeed(speed), PreloadPolicy.METADATA)


def initial_quality_for(speed: ConnectionSpeed) -> str:
    """Quality suggested for a connection class."""
    return _QUALITY_BY_SPEED[ConnectionSpeed(speed)]


def estimate_data_usage_mb(bandwidth_kbps: float, seconds: float) -> float:
    """Megabytes transferred at ``bandwidth_kbps`` over ``seconds``."""
    return bandwidth_kbps * seconds / 8 / 1024


class DataUsageAccumulator:
    """
    Running estimate of media data consumed, in megabytes.

    Each sample adds the usage for the playback advance since the previous
    sample at the selected quality's bitrate. Nothing is added while ``auto``
    is selected or when the position moves backwards, so the total never
    decreases until reset().

    Examples:
        >>> usage = DataUsageAccumulator()
        >>> usage.sample("480p", 80.0)
        9.765625
    """

    def __init__(self):
        self.total_mb = 0.0
        self._last_position: float | None = None

    def sample(self, quality: str, position: float) -> float:
        """Account for playback up to ``position``.

        Args:
            quality: Currently selected quality value
            position: Current playback position in seconds

        Returns:
            Updated total in megabytes
        """
        last = self._last_position if self._last_position is not None else 0.0
        self._last_position = position

        if quality == AUTO_QUALITY:
            return self.total_mb

        advanced = position - last
        if advanced <= 0:
            return self.total_mb

        option = find_quality(quality)
        self.total_mb += estimate_data_usage_mb(option.bandwidth_kbps, advanced)
        return self.total_mb

    def rebase(self, position: float) -> None:
        """Continue sampling from ``position`` without counting the jump."""
        self._last_position = position

    def reset(self) -> None:
        self.total_mb = 0.0
        self._last_position = None

    def format(self) -> str:
        return f"Data used: {self.total_mb:.1f} MB"


__all__ = [
    "AUTO_QUALITY",
    "DEFAULT_CDN_DOMAINS",
    "QualityOption",
    "QUALITY_OPTIONS",
    "PreloadPolicy",
    "find_quality",
    "resolve_url",
    "preload_policy",
    "initial_quality_for",
    "estimate_data_usage_mb",
    "DataUsageAccumulator",
]
