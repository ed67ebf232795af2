"""
Abstract base class for metrics collection.

Provides a pluggable interface for player metrics backends with a
zero-overhead default and an in-memory recorder.
"""

from abc import ABC, abstractmethod
from collections import defaultdict


def _label_key(labels: dict[str, str] | None) -> tuple[tuple[str, str], ...]:
    return tuple(sorted((labels or {}).items()))


class MetricsCollector(ABC):
    """
    Abstract base class for metrics collection.

    Defines the interface for recording player metrics across backends.
    """

    @abstractmethod
    def increment(
        self, metric: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        """
        Increment a counter metric.

        Args:
            metric: Metric name (e.g., 'player.ad.fetch.total')
            value: Amount to increment (default: 1)
            labels: Optional labels (e.g., {'result': 'timeout'})
        """
        pass

    @abstractmethod
    def histogram(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """
        Record a histogram/timing metric.

        Args:
            metric: Metric name (e.g., 'player.ad.fetch.duration')
            value: Value to record (e.g., latency in milliseconds)
            labels: Optional labels
        """
        pass

    def timing(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """Record a duration in milliseconds (wrapper for histogram)."""
        self.histogram(metric, value, labels)


class NoOpMetrics(MetricsCollector):
    """No-operation metrics collector, the default."""

    def increment(
        self, metric: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        pass

    def histogram(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        pass


class InMemoryMetrics(MetricsCollector):
    """
    Keeps counters and observations in dictionaries.

    Used by the simulate command and by tests that assert on emitted metrics.

    Example:
        >>> metrics = InMemoryMetrics()
        >>> metrics.increment('player.ad.fetch.total')
        >>> metrics.count('player.ad.fetch.total')
        1
    """

    def __init__(self):
        self.counters: dict[str, dict[tuple, int]] = defaultdict(lambda: defaultdict(int))
        self.observations: dict[str, list[float]] = defaultdict(list)

    def increment(
        self, metric: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        self.counters[metric][_label_key(labels)] += value

    def histogram(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        self.observations[metric].append(value)

    def count(self, metric: str, labels: dict[str, str] | None = None) -> int:
        """Counter value; without labels, the sum over all label sets."""
        series = self.counters.get(metric, {})
        if labels is None:
            return sum(series.values())
        return series.get(_label_key(labels), 0)


__all__ = ["MetricsCollector", "NoOpMetrics", "InMemoryMetrics"]
