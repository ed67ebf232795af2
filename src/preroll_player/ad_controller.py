"""
Ad countdown and skip controller.

Drives the timeline of one pre-roll: a countdown from the skip delay down to
zero, the skip affordance once the delay has elapsed, and the end of the
cycle. Each cycle is represented by an AdCycle handle that owns its timers;
closing the handle is the single cleanup path for every way a cycle can end.

Phases:
    idle -> counting_down -> skippable -> ended
    counting_down -> ended (ad finished or failed before the skip delay)
"""

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from .events import PlayerEvents
from .log_config import get_context_logger
from .time_provider import TimeProvider
from .timers import Timer


class AdPhase(str, Enum):
    """Ad cycle phase."""

    IDLE = "idle"
    COUNTING_DOWN = "counting_down"
    SKIPPABLE = "skippable"
    ENDED = "ended"


class AdEndReason(str, Enum):
    """Why an ad cycle ended."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    ERROR = "error"
    AUTO_DISMISSED = "auto_dismissed"
    TEARDOWN = "teardown"


class AdKind(str, Enum):
    """How the ad is presented."""

    VAST = "vast"
    PLACEHOLDER = "placeholder"


@dataclass
class AdState:
    """Transient ad presentation state for the current source load."""

    is_showing_ad: bool = False
    ad_already_shown_this_load: bool = False
    show_skip_button: bool = False
    seconds_until_skippable: int = 5

    def reset(self, countdown: int = 5) -> None:
        self.is_showing_ad = False
        self.ad_already_shown_this_load = False
        self.show_skip_button = False
        self.seconds_until_skippable = countdown

    @property
    def countdown_visible(self) -> bool:
        return self.is_showing_ad and not self.show_skip_button and self.seconds_until_skippable > 0

    @property
    def skip_visible(self) -> bool:
        return self.is_showing_ad and self.show_skip_button


class PlaceholderOverlay:
    """Text overlay shown when no playable ad was obtained."""

    TITLE = "Advertisement"
    HINT = "Click to visit advertiser"

    def __init__(self, state: AdState, click_url: str | None):
        self.state = state
        self.click_url = click_url

    @property
    def status_line(self) -> str:
        countdown = self.state.seconds_until_skippable
        if countdown > 0:
            return f"Video starts in {countdown} seconds"
        return "You can skip this ad"

    def lines(self) -> list[str]:
        return [self.TITLE, self.status_line, self.HINT]


class AdCycle:
    """
    Handle for one ad cycle.

    Owns the cycle's timers. close() cancels them and records the end reason;
    it runs at most once, later calls return False.
    """

    _ids = itertools.count(1)

    def __init__(self, kind: AdKind, click_url: str | None = None):
        self.id = next(self._ids)
        self.kind = kind
        self.click_url = click_url
        self.overlay: PlaceholderOverlay | None = None
        self.end_reason: AdEndReason | None = None
        self._timers: list[Timer] = []

    @property
    def closed(self) -> bool:
        return self.end_reason is not None

    def add_timer(self, timer: Timer) -> Timer:
        self._timers.append(timer)
        return timer

    @property
    def active_timers(self) -> int:
        return sum(1 for timer in self._timers if timer.active)

    def close(self, reason: AdEndReason) -> bool:
        if self.closed:
            return False
        self.end_reason = reason
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        return True

    def __repr__(self) -> str:
        return f"AdCycle(id={self.id}, kind={self.kind.value}, end_reason={self.end_reason})"


DismissCallback = Callable[[AdCycle], Awaitable[Any]]


class AdCountdownController:
    """
    Timed state machine gating the skip affordance.

    Video ads: a tick timer counts the display down to a floor of zero and a
    separate one-shot timer reveals skip after skip_delay_sec.

    Placeholder ads: the tick alone drives the timeline. Skip appears when the
    countdown reaches zero; the countdown keeps going below zero and the
    cycle dismisses itself at -grace_sec (skip delay + grace in total).

    Examples:
        >>> controller = AdCountdownController(AdState(), clock)
        >>> cycle = controller.start_video_ad(click_url="https://adv.example")
        >>> await clock.advance(5)
        >>> controller.state.skip_visible
        True
    """

    def __init__(
        self,
        state: AdState,
        time_provider: TimeProvider,
        skip_delay_sec: int = 5,
        grace_sec: int = 5,
        tick_sec: float = 1.0,
    ):
        self.state = state
        self.time_provider = time_provider
        self.skip_delay_sec = skip_delay_sec
        self.grace_sec = grace_sec
        self.tick_sec = tick_sec
        self.phase = AdPhase.IDLE
        self.active_cycle: AdCycle | None = None
        self.logger = get_context_logger("ad_controller")

    def start_video_ad(self, click_url: str | None = None) -> AdCycle:
        """Begin the countdown for a fetched video ad."""
        cycle = self._begin(AdKind.VAST, click_url)

        def tick() -> None:
            if cycle is not self.active_cycle:
                return
            remaining = self.state.seconds_until_skippable
            self.state.seconds_until_skippable = 0 if remaining <= 1 else remaining - 1

        cycle.add_timer(Timer.every(self.time_provider, self.tick_sec, tick, name=f"ad-{cycle.id}-tick"))
        cycle.add_timer(
            Timer.once(
                self.time_provider,
                self.skip_delay_sec,
                lambda: self._reveal_skip(cycle),
                name=f"ad-{cycle.id}-skip",
            )
        )
        return cycle

    def start_placeholder(self, on_dismiss: DismissCallback, click_url: str | None = None) -> AdCycle:
        """Begin the placeholder timeline.

        Args:
            on_dismiss: Awaited with the cycle when the grace window runs out
            click_url: Destination for clicks on the overlay
        """
        cycle = self._begin(AdKind.PLACEHOLDER, click_url)
        cycle.overlay = PlaceholderOverlay(self.state, click_url)

        async def tick() -> None:
            if cycle is not self.active_cycle:
                return
            self.state.seconds_until_skippable -= 1
            remaining = self.state.seconds_until_skippable
            if remaining <= 0:
                self._reveal_skip(cycle)
            if remaining <= -self.grace_sec:
                self.logger.info("Placeholder grace window elapsed", cycle_id=cycle.id)
                await on_dismiss(cycle)

        cycle.add_timer(Timer.every(self.time_provider, self.tick_sec, tick, name=f"ad-{cycle.id}-tick"))
        return cycle

    def end(self, reason: AdEndReason, cycle: AdCycle | None = None) -> bool:
        """Finish the active cycle.

        Args:
            reason: Why the cycle ended
            cycle: Only end if this is still the active cycle

        Returns:
            True if this call ended a cycle
        """
        active = self.active_cycle
        if active is None or (cycle is not None and cycle is not active):
            return False
        if not active.close(reason):
            return False

        self.active_cycle = None
        self.phase = AdPhase.ENDED
        self.state.is_showing_ad = False
        self.state.show_skip_button = False
        if reason is not AdEndReason.TEARDOWN:
            self.state.ad_already_shown_this_load = True

        self.logger = self.logger.bind(ad_phase=self.phase.value)
        self.logger.info(
            PlayerEvents.AD_ENDED,
            cycle_id=active.id,
            kind=active.kind.value,
            reason=reason.value,
        )
        return True

    def reset(self) -> None:
        """Tear down any cycle and restore the initial state for a new source."""
        self.end(AdEndReason.TEARDOWN)
        self.state.reset(self.skip_delay_sec)
        self.phase = AdPhase.IDLE

    def _begin(self, kind: AdKind, click_url: str | None) -> AdCycle:
        if self.active_cycle is not None:
            self.end(AdEndReason.TEARDOWN)

        cycle = AdCycle(kind, click_url)
        self.active_cycle = cycle
        self.phase = AdPhase.COUNTING_DOWN
        self.state.is_showing_ad = True
        self.state.show_skip_button = False
        self.state.seconds_until_skippable = self.skip_delay_sec

        self.logger = self.logger.bind(ad_phase=self.phase.value)
        self.logger.info(PlayerEvents.AD_STARTED, cycle_id=cycle.id, kind=kind.value)
        return cycle

    def _reveal_skip(self, cycle: AdCycle) -> None:
        if cycle is not self.active_cycle or self.phase is AdPhase.SKIPPABLE:
            return
        self.state.show_skip_button = True
        self.phase = AdPhase.SKIPPABLE
        self.logger = self.logger.bind(ad_phase=self.phase.value)
        self.logger.info(PlayerEvents.AD_SKIPPABLE, cycle_id=cycle.id)


__all__ = [
    "AdPhase",
    "AdEndReason",
    "AdKind",
    "AdState",
    "AdCycle",
    "PlaceholderOverlay",
    "AdCountdownController",
]
