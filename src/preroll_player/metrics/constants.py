"""
Metric name constants for the player.

Standardized names keep dashboards consistent across embedders.
"""


class PlayerMetrics:
    """Metric name constants for player operations."""

    # Ad manifest requests
    AD_FETCH_TOTAL = "player.ad.fetch.total"
    AD_FETCH_FAILURE = "player.ad.fetch.failure"
    AD_FETCH_DURATION_MS = "player.ad.fetch.duration"

    # Ad cycles
    ADS_STARTED = "player.ad.started"
    ADS_ENDED = "player.ad.ended"
    PLACEHOLDER_FALLBACKS = "player.ad.placeholder_fallback"

    # Main media
    MEDIA_ERRORS = "player.media.errors"
    QUALITY_CHANGES = "player.quality.changes"

    # Views
    VIEWS_TRACKED = "player.view.tracked"
    NOTIFIER_FAILURES = "player.view.notifier_failures"


class MetricLabels:
    """Standard label names for metrics."""

    RESULT = "result"  # success, timeout, http_error, network_error, invalid_xml, no_media
    AD_KIND = "kind"  # vast, placeholder
    END_REASON = "reason"  # completed, skipped, error, auto_dismissed, teardown
    QUALITY = "quality"
    NOTIFIER = "notifier"


__all__ = ["PlayerMetrics", "MetricLabels"]
