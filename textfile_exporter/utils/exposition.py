"""Adapter over the prometheus_client text parser.

The parser yields a flat stream of families with OpenMetrics-style samples.
This module folds that stream into one ``MetricFamily`` per name, with
summary and histogram samples regrouped into one ``Series`` per label set.
"""

from typing import Dict, Iterable, List, TextIO, Tuple

from prometheus_client.parser import text_fd_to_metric_families
from prometheus_client.samples import Sample

from textfile_exporter.models.schema import (
    HistogramValue, MetricFamily, MetricType, Series, SummaryValue
)


class TextfileParseError(ValueError):
    """Raised for any input the exposition parser cannot make sense of."""


def parse_metric_families(stream: TextIO, source_file: str = "") -> Dict[str, MetricFamily]:
    # consume the parser completely so a failure late in the file
    # never leaves the caller with partial results
    try:
        parsed = list(text_fd_to_metric_families(stream))
    except ValueError as e:  # includes UnicodeDecodeError
        raise TextfileParseError(str(e) or "invalid exposition format") from e

    families: Dict[str, MetricFamily] = {}
    for metric in parsed:
        typ = MetricType.UNTYPED.value if metric.type == "unknown" else metric.type
        name = _family_name(metric.name, typ, metric.samples)
        family = families.get(name)
        if family is None:
            family = families[name] = MetricFamily(
                name=name, type=typ, help=metric.documentation or None
            )
        elif family.type != typ:
            raise TextfileParseError(
                f"metric {name} declared as both {family.type} and {typ}"
            )
        elif family.help is None and metric.documentation:
            family.help = metric.documentation
        family.series.extend(_build_series(metric.name, typ, metric.samples, source_file))
    return families


def _family_name(name: str, typ: str, samples: List[Sample]) -> str:
    # the parser strips _total from counter families; key them on the
    # sample name instead so it matches what is exposed
    if typ == MetricType.COUNTER.value:
        return samples[0].name if samples else name + "_total"
    return name


def _build_series(name: str, typ: str, samples: Iterable[Sample], source_file: str) -> List[Series]:
    if typ == MetricType.SUMMARY.value:
        return _group_samples(name, samples, source_file, "quantile")
    if typ == MetricType.HISTOGRAM.value:
        return _group_samples(name, samples, source_file, "le")
    return [
        Series(labels=dict(s.labels), value=float(s.value),
               source_file=source_file, timestamp=s.timestamp)
        for s in samples
    ]


def _group_samples(name: str, samples: Iterable[Sample], source_file: str, bound_label: str) -> List[Series]:
    grouped: Dict[Tuple[Tuple[str, str], ...], Series] = {}
    for sample in samples:
        labels = {k: v for k, v in sample.labels.items() if k != bound_label}
        key = tuple(sorted(labels.items()))
        series = grouped.get(key)
        if series is None:
            value = SummaryValue() if bound_label == "quantile" else HistogramValue()
            series = grouped[key] = Series(labels=labels, value=value, source_file=source_file)
        if sample.timestamp is not None:
            series.timestamp = sample.timestamp

        if sample.name == name + "_count":
            series.value.sample_count = float(sample.value)
        elif sample.name == name + "_sum":
            series.value.sample_sum = float(sample.value)
        else:
            bound = sample.labels.get(bound_label)
            if bound is None:
                raise TextfileParseError(f"sample {sample.name} is missing the {bound_label} label")
            try:
                upper = float(bound)
            except ValueError:
                raise TextfileParseError(f"invalid {bound_label} value {bound!r} on {sample.name}")
            if isinstance(series.value, SummaryValue):
                series.value.quantiles[upper] = float(sample.value)
            else:
                series.value.buckets[upper] = float(sample.value)
    return list(grouped.values())
