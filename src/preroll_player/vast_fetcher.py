"""VAST manifest fetching and media extraction."""

import asyncio
import time
from dataclasses import dataclass
from typing import Iterator

import httpx
from lxml import etree

from .config import PlayerConfig
from .events import PlayerEvents
from .exceptions import VastFetchError, VastHTTPError, VastTimeoutError, VastXMLError
from .http_client_manager import get_ad_http_client
from .log_config import get_context_logger
from .metrics import MetricLabels, MetricsCollector, NoOpMetrics, PlayerMetrics


VAST_ACCEPT_HEADER = "application/xml, text/xml"

logger = get_context_logger("vast_fetcher")


@dataclass
class VastAdResult:
    """Playable media and click target extracted from a manifest."""

    ad_video_url: str | None = None
    click_through_url: str | None = None

    @property
    def playable(self) -> bool:
        return bool(self.ad_video_url)


def _iter_local(root: etree._Element, name: str) -> Iterator[etree._Element]:
    """Iterate elements by local name, ignoring namespaces."""
    for element in root.iter(tag=etree.Element):
        if etree.QName(element).localname == name:
            yield element


def _text_content(element: etree._Element) -> str | None:
    text = "".join(element.itertext()).strip()
    return text or None


def parse_vast_ad(xml: str | bytes) -> VastAdResult:
    """Extract the first video media file and click-through from VAST XML.

    A MediaFile qualifies when its ``type`` attribute contains "mp4" or
    "video". Only the first ClickThrough element is considered.

    Args:
        xml: Raw VAST document

    Returns:
        VastAdResult (fields are None when absent)

    Raises:
        VastXMLError: If the document is not well-formed XML
    """
    data = xml.encode("utf-8") if isinstance(xml, str) else xml
    preview = data[:200].decode("utf-8", errors="replace")

    parser = etree.XMLParser(recover=False, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data, parser=parser)  # ruff: noqa: S320
    except (etree.XMLSyntaxError, ValueError) as e:
        logger.warning(PlayerEvents.AD_PARSE_FAILED, error=str(e), xml_preview=preview)
        raise VastXMLError(
            f"Failed to parse VAST XML: {e}",
            xml_preview=preview,
            parser_error=e,
        ) from e

    ad_video_url = None
    for media_file in _iter_local(root, "MediaFile"):
        media_type = media_file.get("type")
        if media_type and ("mp4" in media_type or "video" in media_type):
            ad_video_url = _text_content(media_file)
            break

    click_through_url = None
    for click_through in _iter_local(root, "ClickThrough"):
        click_through_url = _text_content(click_through)
        break

    return VastAdResult(ad_video_url=ad_video_url, click_through_url=click_through_url)


class VastAdFetcher:
    """
    Fetches one VAST manifest per ad request.

    A single GET is issued with a hard time budget; the pending request is
    cancelled when the budget runs out. Every failure mode (timeout, network
    error, non-success status, malformed XML) resolves to None so that the
    caller can fall back to the placeholder ad. There is no retry.

    Examples:
        >>> fetcher = VastAdFetcher.from_config(PlayerConfig())
        >>> result = await fetcher.fetch_ad()
        >>> if result and result.playable:
        ...     print(result.ad_video_url)
    """

    def __init__(
        self,
        ad_url: str,
        timeout_sec: float = 3.0,
        http_client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Args:
            ad_url: Full manifest URL (zone parameter included)
            timeout_sec: Time budget for the request
            http_client: Client to use (shared client when None)
            metrics: Metrics collector (no-op when None)
        """
        self.ad_url = ad_url
        self.timeout_sec = timeout_sec
        self.http_client = http_client
        self.metrics = metrics or NoOpMetrics()
        self.logger = logger

    @classmethod
    def from_config(
        cls,
        config: PlayerConfig,
        http_client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
    ) -> "VastAdFetcher":
        return cls(config.ad_url, config.ad_timeout_sec, http_client, metrics)

    async def fetch_ad(self) -> VastAdResult | None:
        """Fetch and parse the manifest.

        Returns:
            VastAdResult on success, None on any failure
        """
        start_time = time.time()
        result_label = "success"
        self.metrics.increment(PlayerMetrics.AD_FETCH_TOTAL)
        self.logger.debug(PlayerEvents.AD_FETCH_STARTED, url=self.ad_url, timeout=self.timeout_sec)

        try:
            body = await self._request()
            ad = parse_vast_ad(body)
            if not ad.playable:
                result_label = "no_media"
            self.logger.info(
                PlayerEvents.AD_FETCH_SUCCESS,
                has_media=ad.playable,
                has_click_through=ad.click_through_url is not None,
            )
            return ad
        except VastTimeoutError as e:
            result_label = "timeout"
            self.logger.warning(PlayerEvents.AD_FETCH_FAILED, reason=result_label, error=str(e))
        except VastHTTPError as e:
            result_label = "http_error"
            self.logger.warning(
                PlayerEvents.AD_FETCH_FAILED,
                reason=result_label,
                status_code=e.status_code,
            )
        except VastFetchError as e:
            result_label = "network_error"
            self.logger.warning(PlayerEvents.AD_FETCH_FAILED, reason=result_label, error=str(e))
        except VastXMLError as e:
            result_label = "invalid_xml"
            self.logger.warning(PlayerEvents.AD_FETCH_FAILED, reason=result_label, error=str(e))
        finally:
            elapsed_ms = (time.time() - start_time) * 1000
            self.metrics.timing(
                PlayerMetrics.AD_FETCH_DURATION_MS,
                elapsed_ms,
                labels={MetricLabels.RESULT: result_label},
            )

        self.metrics.increment(
            PlayerMetrics.AD_FETCH_FAILURE, labels={MetricLabels.RESULT: result_label}
        )
        return None

    async def _request(self) -> bytes:
        """Issue the GET, translating transport failures into player errors."""
        client = self.http_client or get_ad_http_client()
        headers = {"Accept": VAST_ACCEPT_HEADER}

        try:
            response = await asyncio.wait_for(
                client.get(self.ad_url, headers=headers, timeout=self.timeout_sec),
                timeout=self.timeout_sec,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise VastTimeoutError(
                "Ad request timed out", timeout=self.timeout_sec, url=self.ad_url
            ) from e
        except httpx.HTTPError as e:
            raise VastFetchError(f"Ad request failed: {e}", url=self.ad_url) from e

        if not 200 <= response.status_code < 300:
            raise VastHTTPError(
                "Ad endpoint returned an error status",
                status_code=response.status_code,
                url=self.ad_url,
            )

        return response.content


__all__ = ["VastAdResult", "VastAdFetcher", "parse_vast_ad", "VAST_ACCEPT_HEADER"]
