import logging
import time
from typing import Dict, Iterator, List

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from textfile_exporter.config import METRICS_NAMESPACE
from textfile_exporter.models.schema import CollectorSettings
from textfile_exporter.services.textfile import TextfileCollector

logger = logging.getLogger(__name__)


class ExporterCollector:
    """Runs each named collector per scrape and reports its duration and success."""

    def __init__(self, collectors: Dict[str, Collector], namespace: str = METRICS_NAMESPACE):
        self.collectors = collectors
        self.namespace = namespace

    def describe(self) -> List[Metric]:
        return []

    def collect(self) -> Iterator[Metric]:
        duration = GaugeMetricFamily(
            f"{self.namespace}_exporter_collector_duration_seconds",
            "Duration of a collection.",
            labels=["collector"],
        )
        success = GaugeMetricFamily(
            f"{self.namespace}_exporter_collector_success",
            "Whether the collector was successful.",
            labels=["collector"],
        )
        for name, collector in self.collectors.items():
            t0 = time.perf_counter()
            try:
                families = list(collector.collect())
                ok = 1.0
            except Exception:
                logger.exception("Collector %s failed", name)
                families, ok = [], 0.0
            duration.add_metric([name], time.perf_counter() - t0)
            success.add_metric([name], ok)
            yield from families
        yield duration
        yield success


def build_exporter(settings: CollectorSettings) -> ExporterCollector:
    return ExporterCollector(
        {"textfile": TextfileCollector.from_settings(settings)},
        namespace=settings.namespace,
    )


def register_exporter(settings: CollectorSettings, registry: CollectorRegistry = REGISTRY) -> ExporterCollector:
    exporter = build_exporter(settings)
    registry.register(exporter)
    return exporter


def get_metrics_text(registry: CollectorRegistry = REGISTRY) -> bytes:
    return generate_latest(registry)


__all__ = ["CONTENT_TYPE_LATEST", "ExporterCollector", "build_exporter",
           "get_metrics_text", "register_exporter"]
