"""argparse routing for preroll-player."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import httpx

from .ad_controller import AdKind
from .config import PlayerConfig, TimeMode
from .http_client_manager import close_http_clients
from .log_config import PlayerContext, configure_logging
from .media import MediaElement
from .metrics import InMemoryMetrics, PlayerMetrics
from .network import ConnectionInfo, NetworkSpeedObserver, StaticConnectionSignal
from .player import PlayerState, PrerollPlayer
from .quality import QUALITY_OPTIONS, resolve_url
from .settings import get_settings
from .time_provider import SimulatedTimeProvider
from .vast_fetcher import VastAdFetcher


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="preroll-player", description="Pre-roll video player tools")
    p.add_argument("--log-level", default=None, help="Log level (default from settings)")
    p.add_argument("--log-json", action="store_true", help="Emit JSON log lines on stderr")
    sub = p.add_subparsers(dest="command", required=True)

    p_fetch = sub.add_parser("fetch-ad", help="Fetch the VAST manifest and print the extracted ad")
    p_fetch.add_argument("--url", help="Manifest URL (default: configured endpoint and zone)")
    p_fetch.add_argument("--timeout", type=float, help="Request time budget in seconds")

    p_resolve = sub.add_parser("resolve-url", help="Print the media URL for a quality")
    p_resolve.add_argument("url", help="Source URL")
    p_resolve.add_argument(
        "quality", choices=[option.value for option in QUALITY_OPTIONS], help="Quality value"
    )

    p_sim = sub.add_parser("simulate", help="Run one headless playback on simulated time")
    p_sim.add_argument("src", help="Source URL")
    p_sim.add_argument("--ad-xml", type=Path, help="Serve this VAST file instead of the live endpoint")
    p_sim.add_argument(
        "--offline", action="store_true", help="Make the ad request fail (placeholder path)"
    )
    p_sim.add_argument("--skip", action="store_true", help="Skip the ad as soon as allowed")
    p_sim.add_argument(
        "--ad-duration", type=float, default=15.0, help="Video ad length in seconds (default 15)"
    )
    p_sim.add_argument(
        "--watch", type=float, default=30.0, help="Seconds of main playback to simulate (default 30)"
    )
    p_sim.add_argument("--quality", help="Quality to switch to once playback starts")
    p_sim.add_argument(
        "--effective-type",
        choices=["slow-2g", "2g", "3g", "4g"],
        help="Connection signal to report (default: no signal)",
    )

    return p


def _fetch_ad(args: argparse.Namespace) -> int:
    config = PlayerConfig.from_settings()

    async def run() -> int:
        fetcher = VastAdFetcher(args.url or config.ad_url, args.timeout or config.ad_timeout_sec)
        try:
            result = await fetcher.fetch_ad()
        finally:
            await close_http_clients()
        if result is None:
            print("No ad available", file=sys.stderr)
            return 1
        print(json.dumps({"ad_video_url": result.ad_video_url, "click_through_url": result.click_through_url}))
        return 0 if result.playable else 1

    return asyncio.run(run())


def _resolve_url(args: argparse.Namespace) -> int:
    config = PlayerConfig.from_settings()
    print(resolve_url(args.url, args.quality, config.cdn_domains))
    return 0


def _simulation_client(args: argparse.Namespace) -> httpx.AsyncClient | None:
    if args.ad_xml is not None:
        body = args.ad_xml.read_bytes()
        return httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=body))
        )
    if args.offline:
        return httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    return None


async def _simulate(args: argparse.Namespace) -> int:
    config = PlayerConfig.from_settings(time_mode=TimeMode.SIMULATED)
    clock = SimulatedTimeProvider()
    metrics = InMemoryMetrics()
    client = _simulation_client(args)

    signal = None
    if args.effective_type:
        signal = StaticConnectionSignal(ConnectionInfo(effective_type=args.effective_type))

    main, ad = MediaElement("main"), MediaElement("ad")
    player = PrerollPlayer(
        args.src,
        main,
        ad,
        fetcher=VastAdFetcher.from_config(config, http_client=client, metrics=metrics),
        network=NetworkSpeedObserver(signal),
        config=config,
        time_provider=clock,
        metrics=metrics,
        url_opener=lambda url: print(f"open {url}"),
    )

    def report(note: str) -> None:
        print(f"t={clock.now():6.1f}s  {player.state.value:<12} {note}")

    try:
        await player.mount()
        report(f"loading {main.src}")
        await main.emit("canplay")
        report("ready")

        await main.play()
        cycle = player.controller.active_cycle
        report(f"ad started ({cycle.kind.value})" if cycle else "no ad")

        if cycle is not None and args.skip:
            await clock.advance(config.skip_delay_sec)
            await player.skip_ad()
            report("ad skipped")
        elif cycle is not None and cycle.kind is AdKind.VAST:
            await clock.advance(args.ad_duration)
            await ad.emit("ended")
            report("ad completed")
        elif cycle is not None:
            await clock.advance(config.skip_delay_sec + config.placeholder_grace_sec)
            report("placeholder dismissed")

        if args.quality and player.state is PlayerState.MAIN_PLAYING:
            await player.change_quality(args.quality)
            await main.emit("loadeddata")
            report(f"quality {args.quality}")

        step = 1.0
        watched = 0.0
        while watched < args.watch and player.state is PlayerState.MAIN_PLAYING:
            await clock.advance(step)
            main.current_time += step
            watched += step
            await main.emit("progress")
        report(player.data_usage_text or "no data usage estimate (auto quality)")
    finally:
        await player.unmount()
        if client is not None:
            await client.aclose()
        await close_http_clients()

    print("states: " + " -> ".join(state.value for state in player.history))
    print(
        "ads started: {}, ads ended: {}, views tracked: {}".format(
            metrics.count(PlayerMetrics.ADS_STARTED),
            metrics.count(PlayerMetrics.ADS_ENDED),
            metrics.count(PlayerMetrics.VIEWS_TRACKED),
        )
    )
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    if args.command == "fetch-ad":
        return _fetch_ad(args)
    if args.command == "resolve-url":
        return _resolve_url(args)
    if args.command == "simulate":
        return asyncio.run(_simulate(args))
    return 2


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, json_output=args.log_json or settings.log_json)
    with PlayerContext(command=args.command, environment=settings.environment):
        return _dispatch(args)


if __name__ == "__main__":
    sys.exit(main())
