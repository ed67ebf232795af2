"""Unit tests for the ad countdown and skip controller."""

import pytest

from preroll_player.ad_controller import (
    AdCountdownController,
    AdCycle,
    AdEndReason,
    AdKind,
    AdPhase,
    AdState,
)
from preroll_player.time_provider import SimulatedTimeProvider


@pytest.fixture
def ad_state() -> AdState:
    return AdState()


@pytest.fixture
def controller(ad_state, clock) -> AdCountdownController:
    return AdCountdownController(ad_state, clock)


class TestAdState:
    """Test the presentation state flags."""

    def test_reset(self):
        state = AdState(True, True, True, 0)
        state.reset()
        assert state == AdState(False, False, False, 5)

    def test_countdown_and_skip_are_exclusive(self):
        state = AdState(is_showing_ad=True, seconds_until_skippable=3)
        assert state.countdown_visible and not state.skip_visible

        state.show_skip_button = True
        assert state.skip_visible and not state.countdown_visible

    def test_nothing_visible_without_ad(self):
        state = AdState(show_skip_button=True)
        assert not state.skip_visible
        assert not state.countdown_visible


class TestAdCycle:
    """Test the per-cycle cleanup handle."""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, clock):
        from preroll_player.timers import Timer

        cycle = AdCycle(AdKind.VAST)
        timer = cycle.add_timer(Timer.every(clock, 1.0, lambda: None))

        assert cycle.close(AdEndReason.SKIPPED) is True
        assert cycle.close(AdEndReason.COMPLETED) is False
        assert cycle.end_reason is AdEndReason.SKIPPED
        assert cycle.closed
        assert timer.cancelled

    def test_cycle_ids_increase(self):
        assert AdCycle(AdKind.VAST).id < AdCycle(AdKind.PLACEHOLDER).id


class TestVideoAdTimeline:
    """Test the countdown for fetched video ads."""

    @pytest.mark.asyncio
    async def test_countdown_then_skip(self, controller, ad_state, clock):
        cycle = controller.start_video_ad(click_url="https://adv.example")

        assert controller.phase is AdPhase.COUNTING_DOWN
        assert ad_state.is_showing_ad
        assert ad_state.seconds_until_skippable == 5
        assert cycle.click_url == "https://adv.example"

        seen = []
        for _ in range(4):
            await clock.advance(1.0)
            seen.append(ad_state.seconds_until_skippable)
            assert not ad_state.skip_visible
        assert seen == [4, 3, 2, 1]

        await clock.advance(1.0)
        assert ad_state.seconds_until_skippable == 0
        assert ad_state.skip_visible
        assert controller.phase is AdPhase.SKIPPABLE

    @pytest.mark.asyncio
    async def test_countdown_floors_at_zero(self, controller, ad_state, clock):
        controller.start_video_ad()
        await clock.advance(12.0)
        assert ad_state.seconds_until_skippable == 0
        assert ad_state.skip_visible

    @pytest.mark.asyncio
    async def test_end_clears_both_timers(self, controller, ad_state, clock):
        cycle = controller.start_video_ad()
        await clock.advance(2.0)

        assert controller.end(AdEndReason.COMPLETED) is True
        await clock.advance(10.0)

        assert cycle.active_timers == 0
        assert clock.pending_sleepers() == 0
        assert controller.phase is AdPhase.ENDED
        assert not ad_state.is_showing_ad
        assert not ad_state.show_skip_button
        assert ad_state.ad_already_shown_this_load
        assert ad_state.seconds_until_skippable == 3

    @pytest.mark.asyncio
    async def test_end_twice_is_noop(self, controller):
        cycle = controller.start_video_ad()
        assert controller.end(AdEndReason.SKIPPED) is True
        assert controller.end(AdEndReason.COMPLETED) is False
        assert cycle.end_reason is AdEndReason.SKIPPED

    @pytest.mark.asyncio
    async def test_end_stale_cycle_is_noop(self, controller):
        first = controller.start_video_ad()
        second = controller.start_placeholder(on_dismiss=lambda cycle: None)

        assert first.end_reason is AdEndReason.TEARDOWN
        assert controller.end(AdEndReason.COMPLETED, first) is False
        assert controller.active_cycle is second

    @pytest.mark.asyncio
    async def test_custom_delays(self, ad_state):
        clock = SimulatedTimeProvider()
        controller = AdCountdownController(ad_state, clock, skip_delay_sec=2, tick_sec=0.5)
        controller.start_video_ad()

        await clock.advance(1.5)
        assert not ad_state.skip_visible
        await clock.advance(0.5)
        assert ad_state.skip_visible


class TestPlaceholderTimeline:
    """Test the self-dismissing placeholder."""

    @pytest.mark.asyncio
    async def test_skip_at_zero_and_dismiss_after_grace(self, controller, ad_state, clock):
        dismissed = []

        async def on_dismiss(cycle):
            dismissed.append(clock.now())
            controller.end(AdEndReason.AUTO_DISMISSED, cycle)

        cycle = controller.start_placeholder(on_dismiss, click_url="https://ads.example/click")
        overlay = cycle.overlay
        assert overlay.lines() == [
            "Advertisement",
            "Video starts in 5 seconds",
            "Click to visit advertiser",
        ]

        await clock.advance(4.0)
        assert ad_state.seconds_until_skippable == 1
        assert not ad_state.skip_visible
        assert overlay.status_line == "Video starts in 1 seconds"

        await clock.advance(1.0)
        assert ad_state.seconds_until_skippable == 0
        assert ad_state.skip_visible
        assert overlay.status_line == "You can skip this ad"

        await clock.advance(4.0)
        assert ad_state.seconds_until_skippable == -4
        assert dismissed == []

        await clock.advance(1.0)
        assert dismissed == [10.0]
        assert cycle.end_reason is AdEndReason.AUTO_DISMISSED
        assert controller.phase is AdPhase.ENDED

        await clock.advance(10.0)
        assert dismissed == [10.0]
        assert clock.pending_sleepers() == 0

    @pytest.mark.asyncio
    async def test_reset_tears_down(self, controller, ad_state, clock):
        cycle = controller.start_placeholder(on_dismiss=lambda c: None)
        await clock.advance(2.0)

        controller.reset()

        assert cycle.end_reason is AdEndReason.TEARDOWN
        assert controller.phase is AdPhase.IDLE
        assert ad_state == AdState()
