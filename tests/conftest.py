"""Pytest configuration and shared fixtures for player tests."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest


sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from preroll_player.config import PlayerConfig, TimeMode
from preroll_player.media import EventEmitter, MediaElement
from preroll_player.metrics import InMemoryMetrics
from preroll_player.network import ConnectionInfo, NetworkSpeedObserver, StaticConnectionSignal
from preroll_player.player import PrerollPlayer
from preroll_player.time_provider import SimulatedTimeProvider
from preroll_player.tracking import NotifierRegistry
from preroll_player.vast_fetcher import VastAdFetcher


CDN_SRC = "https://vz-1234.b-cdn.net/videos/clip.mp4"
AD_URL = "https://s.magsrv.com/v1/vast.php?idzone=5660526"


# ==================== VAST XML Fixtures ====================


@pytest.fixture
def vast_xml() -> str:
    """VAST document with a video media file and a click-through."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<VAST version="3.0">
  <Ad id="ad-001">
    <InLine>
      <AdSystem>Test Ad System</AdSystem>
      <Creatives>
        <Creative>
          <Linear>
            <Duration>00:00:15</Duration>
            <MediaFiles>
              <MediaFile delivery="progressive" type="application/x-mpegURL">
                <![CDATA[https://media.example.com/ad.m3u8]]>
              </MediaFile>
              <MediaFile delivery="progressive" type="video/mp4" width="640" height="360">
                <![CDATA[ https://media.example.com/ad.mp4 ]]>
              </MediaFile>
            </MediaFiles>
            <VideoClicks>
              <ClickThrough><![CDATA[https://advertiser.example.com/landing]]></ClickThrough>
            </VideoClicks>
          </Linear>
        </Creative>
      </Creatives>
    </InLine>
  </Ad>
</VAST>"""


@pytest.fixture
def vast_without_media_xml() -> str:
    """VAST document without any video media file."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<VAST version="3.0">
  <Ad id="ad-002">
    <InLine>
      <Creatives>
        <Creative>
          <Linear>
            <MediaFiles>
              <MediaFile type="image/png">https://media.example.com/banner.png</MediaFile>
            </MediaFiles>
            <VideoClicks>
              <ClickThrough>https://advertiser.example.com/other</ClickThrough>
            </VideoClicks>
          </Linear>
        </Creative>
      </Creatives>
    </InLine>
  </Ad>
</VAST>"""


@pytest.fixture
def empty_vast_xml() -> str:
    """No-fill VAST response."""
    return '<?xml version="1.0" encoding="UTF-8"?><VAST version="3.0"/>'


# ==================== Mock HTTP Client Fixtures ====================


def make_response(content: str | bytes = b"", status_code: int = 200) -> MagicMock:
    """Create a mock httpx response."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.headers = {"content-type": "application/xml"}
    response.content = content.encode("utf-8") if isinstance(content, str) else content
    return response


@pytest.fixture
def mock_http_response(vast_xml):
    """Successful manifest response."""
    return make_response(vast_xml)


@pytest.fixture
def mock_http_client(mock_http_response):
    """Create mock async HTTP client."""
    client = AsyncMock(spec=httpx.AsyncClient)
    client.get = AsyncMock(return_value=mock_http_response)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def make_http_client():
    """Factory for a mock client answering every GET with one response."""

    def factory(content: str | bytes = b"", status_code: int = 200):
        client = AsyncMock(spec=httpx.AsyncClient)
        client.get = AsyncMock(return_value=make_response(content, status_code))
        client.aclose = AsyncMock()
        return client

    return factory


@pytest.fixture
def failing_http_client():
    """Client whose requests fail at the transport level."""
    client = AsyncMock(spec=httpx.AsyncClient)
    client.get = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
    client.aclose = AsyncMock()
    return client


# ==================== Player Fixtures ====================


@pytest.fixture
def clock() -> SimulatedTimeProvider:
    """Virtual clock starting at zero."""
    return SimulatedTimeProvider()


@pytest.fixture
def metrics() -> InMemoryMetrics:
    return InMemoryMetrics()


@pytest.fixture
def player_config() -> PlayerConfig:
    return PlayerConfig(time_mode=TimeMode.SIMULATED)


@pytest.fixture
def main_element() -> MediaElement:
    return MediaElement("main")


@pytest.fixture
def ad_element() -> MediaElement:
    return MediaElement("ad")


@pytest.fixture
def bus() -> EventEmitter:
    return EventEmitter("document")


@pytest.fixture
def connection_signal() -> StaticConnectionSignal:
    return StaticConnectionSignal(ConnectionInfo(effective_type="4g", downlink=20.0))


@pytest.fixture
def make_player(main_element, ad_element, clock, metrics, player_config, bus):
    """Factory building a player around the shared elements and clock.

    Keyword arguments override the defaults; ``http_client`` builds the
    fetcher from the player config.
    """

    def factory(src: str = CDN_SRC, http_client=None, **kwargs) -> PrerollPlayer:
        if "fetcher" not in kwargs:
            kwargs["fetcher"] = VastAdFetcher.from_config(
                player_config, http_client=http_client, metrics=metrics
            )
        kwargs.setdefault("network", NetworkSpeedObserver())
        kwargs.setdefault("notifiers", NotifierRegistry())
        kwargs.setdefault("bus", bus)
        kwargs.setdefault("config", player_config)
        kwargs.setdefault("time_provider", clock)
        kwargs.setdefault("metrics", metrics)
        return PrerollPlayer(src, main_element, ad_element, **kwargs)

    return factory
