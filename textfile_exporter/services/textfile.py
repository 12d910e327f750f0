"""Textfile collector.

Republishes metrics that other processes drop into a directory as ``*.prom``
files, alongside the mtime of every file read and a scrape error flag.
"""

import logging
import os
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from prometheus_client.metrics_core import Metric

from textfile_exporter.config import METRICS_NAMESPACE, TEXTFILE_DIRECTORY
from textfile_exporter.models.schema import (
    CollectorSettings, Descriptor, HistogramRecord, MetricFamily, MetricRecord,
    MetricType, ScalarRecord, Series, SummaryRecord
)
from textfile_exporter.services.families import FamilyBuilder, MetricSink
from textfile_exporter.utils.exposition import TextfileParseError, parse_metric_families
from textfile_exporter.utils.hash_utils import friendly_string, series_hash
from textfile_exporter.utils.io_utils import list_textfiles, text_stream

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (MetricType.COUNTER, MetricType.GAUGE, MetricType.UNTYPED)


class CollectionCycle:
    """State owned by a single collection cycle, discarded when it ends."""

    def __init__(self) -> None:
        self.seen: Dict[int, str] = {}     # series hash -> first file it was read from
        self.mtimes: Dict[str, float] = {}
        self.error = 0.0

    def fail(self) -> None:
        self.error = 1.0


class TextfileCollector:
    def __init__(self, directory: str = TEXTFILE_DIRECTORY,
                 namespace: str = METRICS_NAMESPACE,
                 mtime: Optional[float] = None):
        self.path = directory
        self.namespace = namespace
        # Only set for testing to get predictable output.
        self.mtime = mtime

    @classmethod
    def from_settings(cls, settings: CollectorSettings) -> "TextfileCollector":
        return cls(directory=settings.directory, namespace=settings.namespace)

    def describe(self) -> List[Metric]:
        # keeps registration from running a full cycle
        return []

    def collect(self) -> Iterator[Metric]:
        builder = FamilyBuilder()
        self.update(builder)
        yield from builder.families()

    def update(self, sink: MetricSink) -> None:
        """Run one collection cycle, pushing every record into ``sink``.

        Never raises for unreadable or malformed files; those set the
        scrape error flag and are logged.
        """
        cycle = CollectionCycle()

        for entry in self._scan(cycle):
            path = os.path.join(self.path, entry.name)
            families = self._process_file(path, entry.name, cycle)
            if families is None:
                continue
            for family in families.values():
                convert_metric_family(family, sink, cycle.seen, path)

        self._export_mtimes(cycle.mtimes, sink)

        sink.push(ScalarRecord(
            descriptor=Descriptor(
                name=f"{self.namespace}_textfile_scrape_error",
                help="1 if there was an error opening or reading a file, 0 otherwise",
            ),
            value_type=MetricType.GAUGE,
            value=cycle.error,
        ))

    def _scan(self, cycle: CollectionCycle) -> List[os.DirEntry]:
        try:
            return list_textfiles(self.path)
        except OSError as e:
            # an empty path just means no textfiles are configured
            if self.path:
                logger.error("Error reading textfile collector directory %r: %s", self.path, e)
                cycle.fail()
            return []

    def _process_file(self, path: str, filename: str, cycle: CollectionCycle) -> Optional[Dict[str, MetricFamily]]:
        logger.debug("Processing file %r", path)
        try:
            fh = open(path, "rb")
        except OSError as e:
            logger.error("Error opening %r: %s", path, e)
            cycle.fail()
            return None

        with fh:
            try:
                mtime = float(os.fstat(fh.fileno()).st_mtime_ns // 1_000_000_000)
                families = parse_metric_families(text_stream(fh), path)
            except (OSError, TextfileParseError) as e:
                logger.error("Error parsing %r: %s", path, e)
                cycle.fail()
                return None

        for family in families.values():
            if any(s.timestamp is not None for s in family.series):
                logger.error("Textfile %r contains unsupported client-side timestamps, skipping entire file", path)
                cycle.fail()
                return None
            if family.help is None:
                family.help = f"Metric read from {path}"

        # Only set this once it has been parsed and validated, so that
        # a failure does not appear fresh.
        cycle.mtimes[filename] = mtime
        return families

    def _export_mtimes(self, mtimes: Dict[str, float], sink: MetricSink) -> None:
        desc = Descriptor(
            name=f"{self.namespace}_textfile_mtime_seconds",
            help="Unixtime mtime of textfiles successfully read.",
            label_names=["file"],
        )
        # Sorting is needed for predictable output comparison in tests.
        for filename in sorted(mtimes):
            mtime = mtimes[filename] if self.mtime is None else self.mtime
            sink.push(ScalarRecord(descriptor=desc, value_type=MetricType.GAUGE,
                                   value=mtime, label_values=[filename]))


def label_union(series: Sequence[Series]) -> List[str]:
    names: Dict[str, None] = {}
    for s in series:
        for name in s.labels:
            names.setdefault(name, None)
    return list(names)


def pad_labels(labels: Dict[str, str], all_names: Sequence[str]) -> Tuple[List[str], List[str]]:
    names, values = list(labels), list(labels.values())
    for name in all_names:
        if name not in labels:
            names.append(name)
            values.append("")
    return names, values


def convert_metric_family(family: MetricFamily, sink: MetricSink, seen: Dict[int, str], path: str) -> None:
    """Dedupe, pad and push every series of ``family`` read from ``path``."""
    all_names = label_union(family.series)

    for series in family.series:
        names, values = pad_labels(series.labels, all_names)

        h = series_hash(family.name, series.labels)
        if h in seen:
            logger.warning(
                "Metric %s was read from %s, but has already been collected from file %s, skipping",
                friendly_string(family.name, names, values), path, seen[h],
            )
            continue
        seen[h] = path

        record = to_record(family, series, names, values)
        if record is None:
            logger.error("Unknown metric type %r for %s in file %s", family.type, family.name, path)
            continue
        sink.push(record)


def to_record(family: MetricFamily, series: Series, names: List[str], values: List[str]) -> Optional[MetricRecord]:
    desc = Descriptor(name=family.name, help=family.help or "", label_names=names)

    if family.type in _SCALAR_TYPES:
        return ScalarRecord(descriptor=desc, value_type=MetricType(family.type),
                            value=series.value, label_values=values)
    if family.type == MetricType.SUMMARY:
        return SummaryRecord(descriptor=desc,
                             sample_count=series.value.sample_count,
                             sample_sum=series.value.sample_sum,
                             quantiles=dict(series.value.quantiles),
                             label_values=values)
    if family.type == MetricType.HISTOGRAM:
        return HistogramRecord(descriptor=desc,
                               sample_count=series.value.sample_count,
                               sample_sum=series.value.sample_sum,
                               buckets=dict(series.value.buckets),
                               label_values=values)
    return None
