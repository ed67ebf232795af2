"""Unit tests for metrics module."""

import pytest

from preroll_player.metrics import (
    InMemoryMetrics,
    MetricLabels,
    MetricsCollector,
    NoOpMetrics,
    PlayerMetrics,
)


class TestMetricsCollector:
    """Test MetricsCollector abstract base class."""

    def test_is_abstract(self):
        with pytest.raises(TypeError):
            MetricsCollector()  # type: ignore


class TestNoOpMetrics:
    """Test NoOpMetrics implementation."""

    def test_noop_calls(self):
        metrics = NoOpMetrics()

        # Should not raise any exceptions
        metrics.increment("test.metric")
        metrics.increment("test.metric", value=5, labels={"key": "value"})
        metrics.histogram("test.metric", 123.45)
        metrics.timing("test.metric", 1.0, labels={"key": "value"})

    def test_is_instance_of_metrics_collector(self):
        assert isinstance(NoOpMetrics(), MetricsCollector)


class TestInMemoryMetrics:
    """Test the in-memory recorder."""

    def test_counts_by_labels(self):
        metrics = InMemoryMetrics()
        metrics.increment(PlayerMetrics.ADS_ENDED, labels={MetricLabels.END_REASON: "skipped"})
        metrics.increment(PlayerMetrics.ADS_ENDED, labels={MetricLabels.END_REASON: "completed"})
        metrics.increment(PlayerMetrics.ADS_ENDED, value=2, labels={MetricLabels.END_REASON: "skipped"})

        assert metrics.count(PlayerMetrics.ADS_ENDED) == 4
        assert metrics.count(PlayerMetrics.ADS_ENDED, {MetricLabels.END_REASON: "skipped"}) == 3
        assert metrics.count(PlayerMetrics.ADS_ENDED, {MetricLabels.END_REASON: "error"}) == 0

    def test_label_order_irrelevant(self):
        metrics = InMemoryMetrics()
        metrics.increment("m", labels={"a": "1", "b": "2"})
        assert metrics.count("m", {"b": "2", "a": "1"}) == 1

    def test_timing_records_observation(self):
        metrics = InMemoryMetrics()
        metrics.timing(PlayerMetrics.AD_FETCH_DURATION_MS, 12.5)
        assert metrics.observations[PlayerMetrics.AD_FETCH_DURATION_MS] == [12.5]

    def test_unknown_metric_is_zero(self):
        assert InMemoryMetrics().count("missing") == 0


class TestPrometheusMetrics:
    """Test PrometheusMetrics against an isolated registry."""

    @pytest.fixture
    def registry(self):
        prometheus_client = pytest.importorskip("prometheus_client")
        return prometheus_client.CollectorRegistry()

    def test_counter_with_labels(self, registry):
        from preroll_player.metrics import PrometheusMetrics

        metrics = PrometheusMetrics(registry=registry, namespace="test")
        metrics.increment(PlayerMetrics.ADS_ENDED, labels={MetricLabels.END_REASON: "skipped"})
        metrics.increment(PlayerMetrics.ADS_ENDED, labels={MetricLabels.END_REASON: "skipped"})

        value = registry.get_sample_value("test_player_ad_ended_total", {"reason": "skipped"})
        assert value == 2.0

    def test_histogram(self, registry):
        from preroll_player.metrics import PrometheusMetrics

        metrics = PrometheusMetrics(registry=registry)
        metrics.timing(PlayerMetrics.AD_FETCH_DURATION_MS, 150.0)

        assert registry.get_sample_value("player_ad_fetch_duration_count") == 1.0
        assert registry.get_sample_value("player_ad_fetch_duration_sum") == 150.0
