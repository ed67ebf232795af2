"""
Preroll Player Package

A headless, asyncio-driven embedded video player that plays a single VAST
pre-roll ad (or a placeholder when no ad is available) before the main
video, with quality selection, connection-aware defaults and data usage
estimation.

This package provides:
- PrerollPlayer: Playback orchestrator
- VastAdFetcher: VAST manifest request and media extraction
- AdCountdownController: Countdown and skip gating for one ad cycle
- NetworkSpeedObserver: Connection classification and quality hints
- ViewTracker: One-time view tracking with pluggable notifiers

Usage:
    from preroll_player import MediaElement, PrerollPlayer

    main, ad = MediaElement("main"), MediaElement("ad")
    player = PrerollPlayer("https://vz-example.b-cdn.net/video.mp4", main, ad)
    await player.mount()
    await main.play()  # first play shows the pre-roll
"""

from .ad_controller import (
    AdCountdownController,
    AdCycle,
    AdEndReason,
    AdKind,
    AdPhase,
    AdState,
    PlaceholderOverlay,
)
from .config import PlayerConfig, TimeMode
from .media import EventEmitter, ListenerGroup, MediaElement
from .network import (
    ConnectionInfo,
    ConnectionSpeed,
    NetworkSpeedObserver,
    StaticConnectionSignal,
    classify_effective_type,
)
from .player import ERROR_MESSAGE, PlayerState, PrerollPlayer
from .quality import (
    AUTO_QUALITY,
    QUALITY_OPTIONS,
    DataUsageAccumulator,
    PreloadPolicy,
    QualityOption,
    estimate_data_usage_mb,
    initial_quality_for,
    preload_policy,
    resolve_url,
)
from .time_provider import (
    RealtimeTimeProvider,
    SimulatedTimeProvider,
    TimeProvider,
    create_time_provider,
)
from .tracking import (
    NotifierRegistry,
    ViewNotifier,
    ViewTrackedEvent,
    ViewTracker,
    ad_provider_notifier,
    pop_magic_notifier,
)
from .vast_fetcher import VastAdFetcher, VastAdResult, parse_vast_ad

__version__ = "1.0.0"

__all__ = [
    # Orchestrator
    "PrerollPlayer",
    "PlayerState",
    "ERROR_MESSAGE",
    "PlayerConfig",
    "TimeMode",
    # Ads
    "VastAdFetcher",
    "VastAdResult",
    "parse_vast_ad",
    "AdCountdownController",
    "AdCycle",
    "AdEndReason",
    "AdKind",
    "AdPhase",
    "AdState",
    "PlaceholderOverlay",
    # Media
    "EventEmitter",
    "ListenerGroup",
    "MediaElement",
    # Quality and network
    "AUTO_QUALITY",
    "QUALITY_OPTIONS",
    "QualityOption",
    "PreloadPolicy",
    "DataUsageAccumulator",
    "estimate_data_usage_mb",
    "initial_quality_for",
    "preload_policy",
    "resolve_url",
    "ConnectionInfo",
    "ConnectionSpeed",
    "NetworkSpeedObserver",
    "StaticConnectionSignal",
    "classify_effective_type",
    # Tracking
    "NotifierRegistry",
    "ViewNotifier",
    "ViewTrackedEvent",
    "ViewTracker",
    "ad_provider_notifier",
    "pop_magic_notifier",
    # Time
    "TimeProvider",
    "RealtimeTimeProvider",
    "SimulatedTimeProvider",
    "create_time_provider",
]
