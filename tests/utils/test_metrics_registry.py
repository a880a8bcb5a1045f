"""
Tests for the in-process Prometheus metrics.
"""
import pytest
from prospect_radar.utils.metrics import (
    MetricsRegistry,
    Counter,
    Gauge,
    Histogram,
    Timer,
    metrics,
)


class TestCounter:
    """Tests for Counter metric type."""

    def test_counter_increment(self):
        counter = Counter("test_counter", "Test counter")
        counter.inc()
        counter.inc(5)

        values = counter.collect()
        assert len(values) == 1
        assert values[0].value == 6

    def test_counter_with_labels(self):
        """Counter tracks separate values per label combination."""
        counter = Counter("alerts", "Alerts", ["rule"])
        counter.inc(rule="STALE_DEAL")
        counter.inc(2, rule="NO_OWNER")
        counter.inc(rule="STALE_DEAL")

        values = {v.labels["rule"]: v.value for v in counter.collect()}
        assert values == {"STALE_DEAL": 2, "NO_OWNER": 2}

    def test_counter_rejects_negative(self):
        with pytest.raises(ValueError):
            Counter("test_counter", "Test counter").inc(-1)


class TestGauge:

    def test_gauge_keeps_latest_value(self):
        gauge = Gauge("at_risk", "At risk", ["organization_id"])
        gauge.set(10, organization_id="org_1")
        gauge.set(4, organization_id="org_1")

        values = gauge.collect()
        assert len(values) == 1
        assert values[0].value == 4


class TestHistogram:

    def test_observations_fill_cumulative_buckets(self):
        histogram = Histogram("duration", "Duration", buckets=(0.1, 1.0))
        histogram.observe(0.05)
        histogram.observe(0.5)
        histogram.observe(2.0)

        values = {v.labels.get("le", v.labels.get("_metric")): v.value for v in histogram.collect()}
        assert values["0.1"] == 1
        assert values["1.0"] == 2
        assert values["+Inf"] == 3
        assert values["count"] == 3
        assert values["sum"] == pytest.approx(2.55)

    def test_timer_records_elapsed(self):
        histogram = Histogram("duration", "Duration", ["operation"])

        with Timer(histogram, operation="digest") as timer:
            pass

        assert timer.elapsed >= 0
        count = next(v for v in histogram.collect() if v.labels.get("_metric") == "count")
        assert count.value == 1
        assert count.labels["operation"] == "digest"


class TestMetricsRegistry:

    def test_singleton(self):
        assert MetricsRegistry() is metrics

    def test_export_prometheus_text(self):
        metrics.reset()
        metrics.alerts_total.inc(rule="NO_OWNER", level="medium")
        metrics.analysis_duration.observe(0.2, operation="organization_analysis")

        exported = metrics.export()

        assert "# TYPE radar_alerts_total counter" in exported
        assert 'radar_alerts_total{level="medium",rule="NO_OWNER"} 1.0' in exported
        assert 'radar_analysis_duration_seconds_count{operation="organization_analysis"} 1' in exported
        assert 'radar_analysis_duration_seconds_bucket{le="0.25",operation="organization_analysis"} 1' in exported
        metrics.reset()

    def test_reset_clears_values(self):
        metrics.notifications_skipped.inc(3)
        metrics.reset()

        assert metrics.notifications_skipped.collect() == []
