"""Bandwidth-driven media settings (data saver, preload, image variants)."""

from dataclasses import dataclass

from .network import ConnectionInfo
from .quality import DEFAULT_CDN_DOMAINS, PreloadPolicy
from .url_helpers import build_url_preserving_unicode, host_matches


@dataclass
class BandwidthSettings:
    """Settings derived from the current connection."""

    video_quality: str = "medium"  # low | medium | high
    image_format: str = "webp"  # webp | jpg
    preload_strategy: PreloadPolicy = PreloadPolicy.NONE
    data_saver_mode: bool = False


def derive_bandwidth_settings(info: ConnectionInfo, supports_webp: bool = True) -> BandwidthSettings:
    """Adjust media settings to a connection snapshot.

    Args:
        info: Current connection information
        supports_webp: Whether the client can render WebP images

    Returns:
        BandwidthSettings
    """
    settings = BandwidthSettings(data_saver_mode=info.save_data)

    if info.effective_type in ("slow-2g", "2g"):
        settings.video_quality = "low"
        settings.preload_strategy = PreloadPolicy.NONE
        settings.data_saver_mode = True
    elif info.effective_type == "3g":
        settings.video_quality = "medium"
        settings.preload_strategy = PreloadPolicy.NONE
    elif info.effective_type == "4g" and info.downlink > 10:
        settings.video_quality = "high"
        settings.preload_strategy = PreloadPolicy.METADATA

    settings.image_format = "webp" if supports_webp else "jpg"
    return settings


def video_preload_strategy(settings: BandwidthSettings) -> PreloadPolicy:
    if settings.data_saver_mode:
        return PreloadPolicy.NONE
    return settings.preload_strategy


def should_load_preview(info: ConnectionInfo | None, settings: BandwidthSettings) -> bool:
    """Hover previews are skipped in data-saver mode and on 2g links."""
    if settings.data_saver_mode:
        return False
    if info is not None and info.effective_type in ("slow-2g", "2g"):
        return False
    return True


def optimized_image_url(
    url: str,
    settings: BandwidthSettings,
    width: int | None = None,
    height: int | None = None,
    cdn_domains: tuple[str, ...] | list[str] = DEFAULT_CDN_DOMAINS,
) -> str:
    """Request a resized / re-encoded image variant from the CDN.

    Width and height are only sent together. Hosts outside the CDN get the
    original URL back.
    """
    if not url or not host_matches(url, cdn_domains):
        return url

    params: dict[str, str] = {}
    if width and height:
        params["width"] = str(width)
        params["height"] = str(height)
    if settings.image_format == "webp":
        params["format"] = "webp"

    return build_url_preserving_unicode(url, params)


__all__ = [
    "BandwidthSettings",
    "derive_bandwidth_settings",
    "video_preload_strategy",
    "should_load_preview",
    "optimized_image_url",
]
