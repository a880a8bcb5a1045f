"""
Prometheus Metrics Collector

In-process counters for the risk analysis runs, exported in
Prometheus text exposition format (text/plain; version=0.0.4).
"""
import time
import threading
from typing import Dict, List, Optional
from dataclasses import dataclass, field


@dataclass
class MetricValue:
    """Single metric value with optional labels."""
    value: float
    labels: Dict[str, str] = field(default_factory=dict)


class _LabeledMetric:
    """Shared label bookkeeping for all metric kinds."""

    kind = "untyped"

    def __init__(self, name: str, description: str, labels: Optional[List[str]] = None):
        self.name = name
        self.description = description
        self.label_names = labels or []
        self._values: Dict[tuple, float] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _label_key(labels: Dict[str, str]) -> tuple:
        return tuple(sorted(labels.items()))

    def collect(self) -> List[MetricValue]:
        """Collect all metric values."""
        with self._lock:
            return [
                MetricValue(value=v, labels=dict(k))
                for k, v in self._values.items()
            ]


class Counter(_LabeledMetric):
    """Cumulative metric that only goes up (alerts raised, drafts created)."""

    kind = "counter"

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        if amount < 0:
            raise ValueError("Counter can only be incremented")
        key = self._label_key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + amount


class Gauge(_LabeledMetric):
    """Metric that reflects the latest observed value (contacts at risk)."""

    kind = "gauge"

    def set(self, value: float, **labels: str) -> None:
        key = self._label_key(labels)
        with self._lock:
            self._values[key] = value


class Histogram(_LabeledMetric):
    """
    Samples observations into cumulative buckets.
    Used for analysis run duration.
    """

    kind = "histogram"
    DEFAULT_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)

    def __init__(
        self,
        name: str,
        description: str,
        labels: Optional[List[str]] = None,
        buckets: Optional[tuple] = None
    ):
        super().__init__(name, description, labels)
        self.buckets = tuple(sorted(buckets or self.DEFAULT_BUCKETS))
        self._series: Dict[tuple, Dict] = {}

    def observe(self, value: float, **labels: str) -> None:
        key = self._label_key(labels)
        with self._lock:
            series = self._series.setdefault(
                key, {"buckets": {b: 0 for b in self.buckets}, "sum": 0.0, "count": 0}
            )
            series["sum"] += value
            series["count"] += 1
            for bucket in self.buckets:
                if value <= bucket:
                    series["buckets"][bucket] += 1

    def collect(self) -> List[MetricValue]:
        result = []
        with self._lock:
            for key, series in self._series.items():
                base = dict(key)
                for bucket in self.buckets:
                    result.append(MetricValue(series["buckets"][bucket], {**base, "le": str(bucket)}))
                result.append(MetricValue(series["count"], {**base, "le": "+Inf"}))
                result.append(MetricValue(series["sum"], {**base, "_metric": "sum"}))
                result.append(MetricValue(series["count"], {**base, "_metric": "count"}))
        return result


class Timer:
    """Context manager for timing code blocks into a histogram."""

    def __init__(self, histogram: Histogram, **labels: str):
        self.histogram = histogram
        self.labels = labels
        self.start_time: Optional[float] = None
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        if self.start_time is not None:
            self.elapsed = time.perf_counter() - self.start_time
            self.histogram.observe(self.elapsed, **self.labels)


class MetricsRegistry:
    """
    Central registry for analysis metrics.

    Provides singleton access and Prometheus text format export.
    """

    _instance: Optional["MetricsRegistry"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsRegistry":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._metrics: Dict[str, _LabeledMetric] = {}
        self._initialized = True
        self._setup_metrics()

    def _setup_metrics(self) -> None:
        """Initialize all application metrics."""
        self.alerts_total = self._register(Counter(
            "radar_alerts_total",
            "Risk alerts raised by rule and level",
            ["rule", "level"]
        ))

        self.notifications_created = self._register(Counter(
            "radar_notifications_created_total",
            "Notification drafts persisted by type",
            ["type"]
        ))

        self.notifications_skipped = self._register(Counter(
            "radar_notifications_skipped_total",
            "Alerts suppressed by the dedup window"
        ))

        self.contacts_at_risk = self._register(Gauge(
            "radar_contacts_at_risk",
            "Contacts with at least one medium or high alert in the last run",
            ["organization_id"]
        ))

        self.analysis_duration = self._register(Histogram(
            "radar_analysis_duration_seconds",
            "Organization-wide analysis duration",
            ["operation"]
        ))

    def _register(self, metric):
        self._metrics[metric.name] = metric
        return metric

    def export(self) -> str:
        """Export all metrics in Prometheus text exposition format."""
        lines = []

        for name, metric in self._metrics.items():
            lines.append(f"# HELP {name} {metric.description}")
            lines.append(f"# TYPE {name} {metric.kind}")

            for mv in metric.collect():
                labels = dict(mv.labels)
                metric_name = name
                if isinstance(metric, Histogram):
                    if "_metric" in labels:
                        metric_name = f"{name}_{labels.pop('_metric')}"
                    else:
                        metric_name = f"{name}_bucket"
                lines.append(f"{metric_name}{self._format_labels(labels)} {mv.value}")

            lines.append("")

        return "\n".join(lines)

    def _format_labels(self, labels: Dict[str, str]) -> str:
        if not labels:
            return ""
        parts = [f'{k}="{v}"' for k, v in sorted(labels.items())]
        return "{" + ",".join(parts) + "}"

    def reset(self) -> None:
        """Reset all metrics. Useful for testing."""
        self._metrics.clear()
        self._setup_metrics()


# Global metrics instance
metrics = MetricsRegistry()
