"""Player event name constants."""

from enum import Enum


class PlayerEvents(str, Enum):
    """Event type constants for structured logging."""

    # Ad manifest
    AD_FETCH_STARTED = "player.ad.fetch.started"
    AD_FETCH_SUCCESS = "player.ad.fetch.success"
    AD_FETCH_FAILED = "player.ad.fetch.failed"
    AD_PARSE_FAILED = "player.ad.parse.failed"

    # Ad cycle
    AD_STARTED = "player.ad.started"
    AD_SKIPPABLE = "player.ad.skippable"
    AD_ENDED = "player.ad.ended"
    AD_PLAY_FAILED = "player.ad.play_failed"
    PLACEHOLDER_SHOWN = "player.ad.placeholder"

    # Main media
    SOURCE_LOADING = "player.media.loading"
    SOURCE_READY = "player.media.ready"
    SOURCE_ERROR = "player.media.error"
    PLAY_INTERCEPTED = "player.media.play_intercepted"
    MAIN_RESUMED = "player.media.resumed"
    QUALITY_CHANGED = "player.quality.changed"

    # Network
    CONNECTION_CLASSIFIED = "player.network.classified"

    # Tracking
    VIEW_TRACKED = "player.view.tracked"
    NOTIFIER_FAILED = "player.view.notifier_failed"


VIEW_TRACKED_EVENT = "videoViewTracked"


__all__ = ["PlayerEvents", "VIEW_TRACKED_EVENT"]
