"""
Prometheus metrics collector implementation.

Integrates with prometheus_client for exporting player metrics.
"""

from typing import Any

from .base import MetricsCollector


class PrometheusMetrics(MetricsCollector):
    """
    Prometheus metrics collector.

    Creates Counter and Histogram series lazily on first use. Label names are
    fixed by the first call for a given metric.

    Note: prometheus_client is an optional dependency. Install with:
        pip install preroll-player[metrics]

    Example:
        >>> metrics = PrometheusMetrics(registry=CollectorRegistry())
        >>> metrics.increment('player.ad.fetch.total', labels={'result': 'success'})
    """

    def __init__(self, registry: Any | None = None, namespace: str = "") -> None:
        """
        Initialize Prometheus metrics collector.

        Args:
            registry: Optional CollectorRegistry (default REGISTRY when None)
            namespace: Optional prefix for every metric name
        """
        try:
            from prometheus_client import REGISTRY, Counter, Histogram
        except ImportError as e:
            raise ImportError(
                "prometheus_client is required for PrometheusMetrics. "
                "Install with: pip install preroll-player[metrics]"
            ) from e

        self._registry = registry if registry is not None else REGISTRY
        self._namespace = namespace
        self._Counter = Counter
        self._Histogram = Histogram

        self._counters: dict[str, Any] = {}
        self._histograms: dict[str, Any] = {}

    def _sanitize_metric_name(self, metric: str) -> str:
        """Convert dotted names to Prometheus naming."""
        name = metric.replace(".", "_").replace("-", "_")
        return f"{self._namespace}_{name}" if self._namespace else name

    def increment(
        self, metric: str, value: int = 1, labels: dict[str, str] | None = None
    ) -> None:
        metric_name = self._sanitize_metric_name(metric)
        labels = labels or {}

        if metric_name not in self._counters:
            self._counters[metric_name] = self._Counter(
                metric_name,
                f"Counter for {metric}",
                list(labels.keys()),
                registry=self._registry,
            )

        counter = self._counters[metric_name]
        if labels:
            counter.labels(**labels).inc(value)
        else:
            counter.inc(value)

    def histogram(
        self, metric: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        metric_name = self._sanitize_metric_name(metric)
        labels = labels or {}

        if metric_name not in self._histograms:
            self._histograms[metric_name] = self._Histogram(
                metric_name,
                f"Histogram for {metric}",
                list(labels.keys()),
                registry=self._registry,
            )

        histogram = self._histograms[metric_name]
        if labels:
            histogram.labels(**labels).observe(value)
        else:
            histogram.observe(value)


__all__ = ["PrometheusMetrics"]
