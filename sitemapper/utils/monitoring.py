"""
Monitoring and metrics collection for the site mapper.
"""

import time
import logging
from typing import Dict, Optional, Any
from dataclasses import dataclass, field

from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest
from prometheus_client import start_http_server


@dataclass
class Metric:
    """Current value of a metric, split by label set."""
    name: str
    description: str
    metric_type: str  # counter, gauge, histogram
    current_value: float = 0.0
    by_label: Dict[str, float] = field(default_factory=dict)


class MetricsCollector:
    """Collects crawl metrics and mirrors them into a Prometheus registry."""

    def __init__(self, enable_prometheus: bool = False, prometheus_port: int = 8000):
        self.logger = logging.getLogger(__name__)
        self.metrics: Dict[str, Metric] = {}
        self.enable_prometheus = enable_prometheus
        self.prometheus_port = prometheus_port

        self.prometheus_registry = CollectorRegistry()
        self.prometheus_metrics = {
            'fetches_total': Counter(
                'sitemapper_fetches_total',
                'Total number of page fetches by outcome',
                ['outcome'],
                registry=self.prometheus_registry
            ),
            'pages_recorded_total': Counter(
                'sitemapper_pages_recorded_total',
                'Total number of page records written',
                registry=self.prometheus_registry
            ),
            'duplicates_skipped_total': Counter(
                'sitemapper_duplicates_skipped_total',
                'Total number of tasks skipped because the URL was already visited',
                registry=self.prometheus_registry
            ),
            'fetch_duration_seconds': Histogram(
                'sitemapper_fetch_duration_seconds',
                'Duration of page fetches',
                registry=self.prometheus_registry
            ),
            'in_flight_tasks': Gauge(
                'sitemapper_in_flight_tasks',
                'Number of crawl tasks currently running',
                registry=self.prometheus_registry
            )
        }

    def start_prometheus_server(self):
        """Start the Prometheus metrics HTTP server when enabled."""
        if not self.enable_prometheus:
            return

        try:
            start_http_server(self.prometheus_port, registry=self.prometheus_registry)
            self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus server: {e}")

    def _metric(self, name: str, description: str, metric_type: str) -> Metric:
        if name not in self.metrics:
            self.metrics[name] = Metric(name=name, description=description, metric_type=metric_type)
        return self.metrics[name]

    def increment_counter(self, name: str, labels: Optional[Dict[str, str]] = None,
                          description: str = ""):
        """Increment a counter metric."""
        metric = self._metric(name, description, "counter")
        metric.current_value += 1
        if labels:
            key = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
            metric.by_label[key] = metric.by_label.get(key, 0) + 1

        prom_metric = self.prometheus_metrics.get(name)
        if prom_metric is not None:
            if labels:
                prom_metric.labels(**labels).inc()
            else:
                prom_metric.inc()

    def adjust_gauge(self, name: str, delta: float, description: str = ""):
        """Move a gauge metric up or down."""
        metric = self._metric(name, description, "gauge")
        metric.current_value += delta

        prom_metric = self.prometheus_metrics.get(name)
        if prom_metric is not None:
            prom_metric.inc(delta)

    def observe_histogram(self, name: str, value: float, description: str = ""):
        """Record a histogram observation."""
        metric = self._metric(name, description, "histogram")
        metric.current_value = value

        prom_metric = self.prometheus_metrics.get(name)
        if prom_metric is not None:
            prom_metric.observe(value)

    def get_metric(self, name: str) -> Optional[Metric]:
        """Get a metric by name."""
        return self.metrics.get(name)

    def get_current_values(self) -> Dict[str, float]:
        """Get current values of all metrics."""
        return {name: metric.current_value for name, metric in self.metrics.items()}

    def export_prometheus(self) -> bytes:
        """Render the Prometheus text exposition of all metrics."""
        return generate_latest(self.prometheus_registry)


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: MetricsCollector):
        self.metrics = metrics_collector
        self.logger = logging.getLogger(__name__)
        self.start_time = time.time()

    def record_fetch(self, url: str, outcome: str, fetch_time: float):
        """Record a fetch and its outcome."""
        self.metrics.increment_counter('fetches_total', {'outcome': outcome},
                                       'Page fetches by outcome')
        self.metrics.observe_histogram('fetch_duration_seconds', fetch_time,
                                       'Page fetch duration')

    def record_page(self, url: str, links: int, assets: int):
        """Record a page record being written."""
        self.metrics.increment_counter('pages_recorded_total', description='Pages recorded')

    def record_duplicate(self, url: str):
        """Record a task that found its URL already visited."""
        self.metrics.increment_counter('duplicates_skipped_total',
                                       description='Already visited URLs skipped')

    def task_started(self):
        self.metrics.adjust_gauge('in_flight_tasks', 1, 'Crawl tasks running')

    def task_finished(self):
        self.metrics.adjust_gauge('in_flight_tasks', -1, 'Crawl tasks running')

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        current_values = self.metrics.get_current_values()
        runtime = time.time() - self.start_time
        fetches = self.metrics.get_metric('fetches_total')

        return {
            'runtime_seconds': runtime,
            'metrics': current_values,
            'fetches_by_outcome': dict(fetches.by_label) if fetches else {},
            'rates': {
                'fetches_per_second': current_values.get('fetches_total', 0) / runtime if runtime > 0 else 0,
            }
        }


def initialize_monitoring(enable_prometheus: bool = False, prometheus_port: int = 8000) -> CrawlerMonitor:
    """Create a monitor and start its metrics server when enabled."""
    metrics_collector = MetricsCollector(enable_prometheus, prometheus_port)
    metrics_collector.start_prometheus_server()
    return CrawlerMonitor(metrics_collector)
