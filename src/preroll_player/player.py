"""
Playback orchestrator.

Ties the main media element, the ad element, the ad fetcher, the countdown
controller, view tracking and the network observer into the pre-roll
lifecycle of one embedded player:

    loading -> ready -> ad_pending -> ad_playing -> ad_ended -> main_playing
    loading/ready -> error (main media failure; refresh() retries)

All per-player state lives on the instance.
"""

import asyncio
import inspect
from enum import Enum
from typing import Any, Callable

from .ad_controller import (
    AdCountdownController,
    AdCycle,
    AdEndReason,
    AdKind,
    AdState,
    PlaceholderOverlay,
)
from .bandwidth import BandwidthSettings, derive_bandwidth_settings
from .config import PlayerConfig
from .events import PlayerEvents
from .exceptions import MediaPlaybackError
from .log_config import get_context_logger
from .media import EventEmitter, ListenerGroup, MediaElement
from .metrics import MetricLabels, MetricsCollector, NoOpMetrics, PlayerMetrics
from .network import ConnectionSpeed, NetworkSpeedObserver
from .quality import (
    AUTO_QUALITY,
    DataUsageAccumulator,
    PreloadPolicy,
    find_quality,
    preload_policy,
    resolve_url,
)
from .time_provider import TimeProvider, create_time_provider
from .tracking import NotifierRegistry, ViewTracker
from .vast_fetcher import VastAdFetcher, VastAdResult


ERROR_MESSAGE = "Unable to load video. Please try refreshing the page."


class PlayerState(str, Enum):
    """Orchestrator lifecycle state."""

    LOADING = "loading"
    READY = "ready"
    AD_PENDING = "ad_pending"
    AD_PLAYING = "ad_playing"
    AD_ENDED = "ad_ended"
    MAIN_PLAYING = "main_playing"
    ERROR = "error"


class PrerollPlayer:
    """
    Embedded video player with a pre-roll ad on first play.

    The first "play" of the main element after a source load is intercepted:
    main playback is paused, a VAST ad is fetched and shown on the ad
    element (or a placeholder when no playable ad is available), and main
    playback resumes once the ad completes, is skipped, or the placeholder
    dismisses itself.

    Examples:
        >>> main, ad = MediaElement("main"), MediaElement("ad")
        >>> player = PrerollPlayer("https://vz.b-cdn.net/v.mp4", main, ad)
        >>> await player.mount()
        >>> await main.play()  # intercepted, pre-roll starts
        >>> await player.skip_ad()  # once the skip affordance is shown
    """

    def __init__(
        self,
        src: str,
        main: MediaElement,
        ad: MediaElement,
        *,
        poster: str | None = None,
        on_error: Callable[[], Any] | None = None,
        on_can_play: Callable[[], Any] | None = None,
        fetcher: VastAdFetcher | None = None,
        network: NetworkSpeedObserver | None = None,
        notifiers: NotifierRegistry | None = None,
        bus: EventEmitter | None = None,
        config: PlayerConfig | None = None,
        time_provider: TimeProvider | None = None,
        metrics: MetricsCollector | None = None,
        url_opener: Callable[[str], Any] | None = None,
    ):
        if not src:
            raise ValueError("src is required")

        self.config = config or PlayerConfig()
        self.src = src
        self.poster = poster
        self.main = main
        self.ad = ad
        self.on_error = on_error
        self.on_can_play = on_can_play
        self.metrics = metrics or NoOpMetrics()
        self.time_provider = time_provider or create_time_provider(self.config.time_mode.value)
        self.fetcher = fetcher or VastAdFetcher.from_config(self.config, metrics=self.metrics)
        self.network = network or NetworkSpeedObserver()
        self.bus = bus or EventEmitter("document")
        self.view_tracker = ViewTracker(notifiers, self.bus, self.metrics, self.time_provider)
        self.url_opener = url_opener

        self.ad_state = AdState(seconds_until_skippable=self.config.skip_delay_sec)
        self.controller = AdCountdownController(
            self.ad_state,
            self.time_provider,
            skip_delay_sec=self.config.skip_delay_sec,
            grace_sec=self.config.placeholder_grace_sec,
            tick_sec=self.config.tick_sec,
        )
        self.usage = DataUsageAccumulator()
        self.bandwidth = BandwidthSettings()

        self.quality = self.config.default_quality
        self.state = PlayerState.LOADING
        self.history: list[PlayerState] = [self.state]
        self.is_loading = True
        self.video_error = False
        self.mounted = False

        self._listeners = ListenerGroup()
        self._restore_listener: Callable[..., Any] | None = None
        self._pending_restore: tuple[float, bool] | None = None
        self._ad_in_flight = False
        self._load_generation = 0
        self._tasks: set[asyncio.Task] = set()
        self.logger = get_context_logger("player").bind(video_src=src)

    # View state

    @property
    def error_message(self) -> str | None:
        return ERROR_MESSAGE if self.video_error else None

    @property
    def countdown_text(self) -> str | None:
        if not self.ad_state.countdown_visible:
            return None
        return f"Skip in {self.ad_state.seconds_until_skippable}s"

    @property
    def skip_visible(self) -> bool:
        return self.ad_state.skip_visible

    @property
    def overlay(self) -> PlaceholderOverlay | None:
        cycle = self.controller.active_cycle
        return cycle.overlay if cycle is not None else None

    @property
    def data_usage_text(self) -> str | None:
        return self.usage.format() if self.usage.total_mb > 0 else None

    @property
    def connection_label(self) -> str:
        return f"{self.network.speed.value} connection"

    # Lifecycle

    async def mount(self) -> None:
        """Classify the connection, wire listeners and load the source."""
        if self.mounted:
            return
        self.mounted = True

        self.network.start()
        if self.network.quality_hint:
            self.quality = self.network.quality_hint
        if self.network.signal is not None:
            self.bandwidth = derive_bandwidth_settings(self.network.signal.info)
        self.network.add_listener(self._on_speed_change)

        self._reset_for_load()
        self._bind_log_context()
        self._wire()
        self._load()

    async def set_source(self, src: str) -> None:
        """Switch to a new source; the next play shows a fresh pre-roll."""
        if not src:
            raise ValueError("src is required")

        self._teardown()
        self.src = src
        self._reset_for_load()
        self._bind_log_context()
        if self.mounted:
            self._wire()
            self._load()

    async def refresh(self) -> None:
        """Reload the current source after a media error."""
        self.logger.info("Refreshing source", src=self.src)
        await self.set_source(self.src)

    async def unmount(self) -> None:
        """Remove every listener and timer; the main element is not resumed."""
        self.mounted = False
        self._teardown()
        self.network.remove_listener(self._on_speed_change)
        self.network.stop()

        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    async def change_quality(self, quality: str) -> None:
        """Reload the main element at another quality, keeping position.

        Raises:
            UnknownQualityError: If the quality value is not offered
        """
        find_quality(quality)

        if self._pending_restore is not None:
            # Element already reloaded by an earlier change, keep what it captured
            position, was_playing = self._pending_restore
        else:
            position = self.main.current_time
            was_playing = not self.main.paused
        previous = self.quality
        self.quality = quality

        self.main.src = resolve_url(self.src, quality, self.config.cdn_domains)
        self.main.load()
        self.usage.rebase(position)
        self.is_loading = True
        if self.controller.active_cycle is None and not self._ad_in_flight:
            self._set_state(PlayerState.LOADING)

        self.metrics.increment(PlayerMetrics.QUALITY_CHANGES, labels={MetricLabels.QUALITY: quality})
        self._bind_log_context()
        self.logger.info(
            PlayerEvents.QUALITY_CHANGED,
            previous=previous,
            quality=quality,
            position=position,
            was_playing=was_playing,
        )

        if self._restore_listener is not None:
            self.main.remove_listener("loadeddata", self._restore_listener)

        async def restore(**_: Any) -> None:
            self._restore_listener = None
            self._pending_restore = None
            self.main.seek(position)
            self.usage.rebase(position)
            if was_playing:
                await self._play_main()

        self._pending_restore = (position, was_playing)
        self._restore_listener = self.main.once("loadeddata", restore)

    # Ad actions

    async def skip_ad(self) -> bool:
        """End the ad if the skip affordance is visible."""
        cycle = self.controller.active_cycle
        if cycle is None or not self.ad_state.skip_visible:
            return False
        return await self._finish_ad(cycle, AdEndReason.SKIPPED)

    def click_ad(self) -> str | None:
        """Open the active ad's click target.

        Returns:
            The opened URL, or None when there is nothing to open
        """
        cycle = self.controller.active_cycle
        if cycle is None or not cycle.click_url:
            return None

        url = cycle.click_url
        self.logger.info("Ad clicked", cycle_id=cycle.id, url=url)
        if self.url_opener is not None:
            self.url_opener(url)
        return url

    # Wiring

    def _wire(self) -> None:
        group = self._listeners
        group.add(self.main, "loadstart", self._on_loadstart)
        group.add(self.main, "canplay", self._on_canplay)
        group.add(self.main, "error", self._on_main_error)
        group.add(self.main, "play", self._on_main_play)
        group.add(self.main, "progress", self._on_progress)
        group.add(self.ad, "ended", self._on_ad_ended)
        group.add(self.ad, "error", self._on_ad_error)

    def _load(self) -> None:
        self.main.src = resolve_url(self.src, self.quality, self.config.cdn_domains)
        self.main.poster = self.poster
        self.main.preload = self._preload()
        self.main.load()
        self.is_loading = True
        self.video_error = False
        self._set_state(PlayerState.LOADING)
        self.logger.info(PlayerEvents.SOURCE_LOADING, src=self.main.src, preload=self.main.preload.value)

    def _teardown(self) -> None:
        self._listeners.remove_all()
        if self._restore_listener is not None:
            self.main.remove_listener("loadeddata", self._restore_listener)
            self._restore_listener = None
        self._pending_restore = None
        if self.controller.active_cycle is not None:
            self._hide_ad()
            self.controller.end(AdEndReason.TEARDOWN)
        # Invalidates any ad fetch still in flight
        self._load_generation += 1
        self._ad_in_flight = False

    def _reset_for_load(self) -> None:
        self.view_tracker.reset()
        self.usage.reset()
        self.controller.reset()

    def _preload(self) -> PreloadPolicy:
        if self.bandwidth.data_saver_mode:
            return PreloadPolicy.NONE
        return preload_policy(self.network.speed)

    def _set_state(self, state: PlayerState) -> None:
        if state is self.state:
            return
        self.state = state
        self.history.append(state)
        self.logger = self.logger.bind(player_state=state.value)

    def _bind_log_context(self) -> None:
        self.logger = self.logger.bind(video_src=self.src, quality=self.quality)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _call_embedder(self, callback: Callable[[], Any] | None) -> None:
        if callback is None:
            return
        result = callback()
        if inspect.isawaitable(result):
            await result

    # Main element handlers

    def _on_loadstart(self, **_: Any) -> None:
        self.is_loading = True
        self.video_error = False
        if self.state in (PlayerState.READY, PlayerState.ERROR):
            self._set_state(PlayerState.LOADING)

    async def _on_canplay(self, **_: Any) -> None:
        self.is_loading = False
        self.video_error = False
        if self.state in (PlayerState.LOADING, PlayerState.ERROR):
            self._set_state(PlayerState.READY)
        self.logger.debug(PlayerEvents.SOURCE_READY, src=self.main.src)
        await self._call_embedder(self.on_can_play)

    async def _on_main_error(self, error: Exception | None = None, **_: Any) -> None:
        self.is_loading = False
        self.video_error = True
        self._set_state(PlayerState.ERROR)
        self.metrics.increment(PlayerMetrics.MEDIA_ERRORS)
        self.logger.error(
            PlayerEvents.SOURCE_ERROR,
            src=self.main.src,
            error=str(error) if error else None,
        )
        await self._call_embedder(self.on_error)

    def _on_progress(self, **_: Any) -> None:
        if self.quality == AUTO_QUALITY:
            return
        self.usage.sample(self.quality, self.main.current_time)

    async def _on_main_play(self, **_: Any) -> None:
        if self.controller.active_cycle is not None or self._ad_in_flight:
            # Ad owns the screen, main stays paused
            self.main.pause()
            return

        if self.ad_state.ad_already_shown_this_load:
            self._set_state(PlayerState.MAIN_PLAYING)
            return

        self.main.pause()
        self._ad_in_flight = True
        generation = self._load_generation
        self.logger.info(PlayerEvents.PLAY_INTERCEPTED, src=self.src)

        try:
            await self.view_tracker.track(self.src, self.quality, self.network.speed.value)
        except Exception:
            self.logger.exception("View tracking failed", src=self.src)
        await self._play_ad(generation)

    # Ad sequence

    async def _play_ad(self, generation: int) -> None:
        self._set_state(PlayerState.AD_PENDING)
        try:
            try:
                result = await self.fetcher.fetch_ad()
            except Exception:
                self.logger.exception(PlayerEvents.AD_FETCH_FAILED, reason="fetcher_raised")
                result = None

            if generation != self._load_generation or not self.mounted:
                self.logger.debug("Source changed during ad fetch, dropping ad")
                return

            if result is not None and result.playable:
                await self._start_video_ad(result)
            else:
                await self._show_placeholder()
        finally:
            if generation == self._load_generation:
                self._ad_in_flight = False

    async def _start_video_ad(self, result: VastAdResult) -> None:
        cycle = self.controller.start_video_ad(click_url=result.click_through_url)
        self._set_state(PlayerState.AD_PLAYING)
        self.metrics.increment(PlayerMetrics.ADS_STARTED, labels={MetricLabels.AD_KIND: AdKind.VAST.value})

        self.ad.src = result.ad_video_url
        self.ad.visible = True
        self.ad.load()
        try:
            await self.ad.play()
        except MediaPlaybackError as e:
            self.logger.warning(PlayerEvents.AD_PLAY_FAILED, cycle_id=cycle.id, error=str(e))
            await self._fall_back_to_placeholder(cycle)

    async def _show_placeholder(self) -> None:
        cycle = self.controller.start_placeholder(self._on_placeholder_dismissed, click_url=self.config.ad_url)
        self._set_state(PlayerState.AD_PLAYING)
        self.metrics.increment(PlayerMetrics.ADS_STARTED, labels={MetricLabels.AD_KIND: AdKind.PLACEHOLDER.value})
        self.metrics.increment(PlayerMetrics.PLACEHOLDER_FALLBACKS)
        self.logger.info(PlayerEvents.PLACEHOLDER_SHOWN, cycle_id=cycle.id)

    async def _fall_back_to_placeholder(self, cycle: AdCycle) -> None:
        if not self.controller.end(AdEndReason.ERROR, cycle):
            return
        self._hide_ad()
        self.metrics.increment(
            PlayerMetrics.ADS_ENDED,
            labels={MetricLabels.AD_KIND: cycle.kind.value, MetricLabels.END_REASON: AdEndReason.ERROR.value},
        )
        await self._show_placeholder()

    async def _on_placeholder_dismissed(self, cycle: AdCycle) -> None:
        await self._finish_ad(cycle, AdEndReason.AUTO_DISMISSED)

    async def _finish_ad(self, cycle: AdCycle, reason: AdEndReason) -> bool:
        """Close the cycle and hand playback back to the main element."""
        if not self.controller.end(reason, cycle):
            return False

        self._hide_ad()
        self.metrics.increment(
            PlayerMetrics.ADS_ENDED,
            labels={MetricLabels.AD_KIND: cycle.kind.value, MetricLabels.END_REASON: reason.value},
        )
        self._set_state(PlayerState.AD_ENDED)
        await self._play_main()
        return True

    def _hide_ad(self) -> None:
        self.ad.pause()
        self.ad.visible = False

    async def _play_main(self) -> None:
        try:
            await self.main.play()
        except MediaPlaybackError as e:
            self._set_state(PlayerState.READY)
            self.logger.warning("Main playback was refused", error=str(e))
            return
        self._set_state(PlayerState.MAIN_PLAYING)
        self.logger.info(PlayerEvents.MAIN_RESUMED, position=self.main.current_time)

    # Ad element handlers

    async def _on_ad_ended(self, **_: Any) -> None:
        cycle = self.controller.active_cycle
        if cycle is None or cycle.kind is not AdKind.VAST:
            return
        await self._finish_ad(cycle, AdEndReason.COMPLETED)

    async def _on_ad_error(self, error: Exception | None = None, **_: Any) -> None:
        cycle = self.controller.active_cycle
        if cycle is None or cycle.kind is not AdKind.VAST:
            return
        self.logger.warning(PlayerEvents.AD_PLAY_FAILED, cycle_id=cycle.id, error=str(error) if error else None)
        await self._fall_back_to_placeholder(cycle)

    # Network

    def _on_speed_change(self, speed: ConnectionSpeed) -> None:
        if self.network.signal is not None:
            self.bandwidth = derive_bandwidth_settings(self.network.signal.info)
        self.main.preload = self._preload()

        hint = self.network.quality_hint
        if hint and hint != self.quality and self.mounted:
            self._spawn(self.change_quality(hint))


__all__ = ["PrerollPlayer", "PlayerState", "ERROR_MESSAGE"]
