"""
Metrics collection module for the player.

Provides pluggable metrics interfaces with a zero-overhead default.

Example:
    >>> from preroll_player.metrics import NoOpMetrics, PrometheusMetrics
    >>>
    >>> metrics = NoOpMetrics()
    >>> metrics.increment('player.ad.fetch.total')  # No-op
    >>>
    >>> metrics = PrometheusMetrics()
    >>> metrics.increment('player.ad.ended', labels={'reason': 'skipped'})
"""

from .base import InMemoryMetrics, MetricsCollector, NoOpMetrics
from .constants import MetricLabels, PlayerMetrics
from .prometheus import PrometheusMetrics

__all__ = [
    "MetricsCollector",
    "NoOpMetrics",
    "InMemoryMetrics",
    "PrometheusMetrics",
    "PlayerMetrics",
    "MetricLabels",
]
