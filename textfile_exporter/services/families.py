import logging
import math
from typing import Dict, List, Protocol

from prometheus_client.metrics_core import Metric
from prometheus_client.utils import floatToGoString

from textfile_exporter.models.schema import (
    HistogramRecord, MetricRecord, MetricType, ScalarRecord, SummaryRecord
)

logger = logging.getLogger(__name__)


class MetricSink(Protocol):
    def push(self, record: MetricRecord) -> None: ...


class RecordList(list):
    """Sink that keeps the records as pushed."""

    def push(self, record: MetricRecord) -> None:
        self.append(record)


class FamilyBuilder:
    """Sink that folds records into prometheus_client metric families.

    Records sharing a name land in one family, so the exposition carries a
    single HELP/TYPE header per name. The first record seen for a name fixes
    the family's type and help; later records of another type are dropped.

    prometheus_client always exposes counters as `<name>_total`, so a counter
    a producer wrote without that suffix is republished under the suffixed
    name. Counter descriptors are expected to carry the exposed name.
    """

    def __init__(self) -> None:
        self._families: Dict[str, Metric] = {}

    def push(self, record: MetricRecord) -> None:
        desc = record.descriptor
        typ = _record_type(record)
        family = self._families.get(desc.name)
        if family is None:
            family = self._families[desc.name] = Metric(_family_name(desc.name, typ), desc.help, typ)
        elif family.type != typ:
            logger.warning("Metric %s was already collected as %s, dropping %s sample",
                           desc.name, family.type, typ)
            return

        labels = dict(zip(desc.label_names, record.label_values))
        if isinstance(record, ScalarRecord):
            family.add_sample(_sample_name(desc.name, typ), labels, record.value)
        elif isinstance(record, SummaryRecord):
            for quantile, value in sorted(record.quantiles.items()):
                family.add_sample(desc.name, {**labels, "quantile": floatToGoString(quantile)}, value)
            family.add_sample(desc.name + "_sum", labels, record.sample_sum)
            family.add_sample(desc.name + "_count", labels, record.sample_count)
        else:
            buckets = dict(record.buckets)
            buckets.setdefault(math.inf, record.sample_count)
            for bound, count in sorted(buckets.items()):
                family.add_sample(desc.name + "_bucket", {**labels, "le": floatToGoString(bound)}, count)
            family.add_sample(desc.name + "_sum", labels, record.sample_sum)
            family.add_sample(desc.name + "_count", labels, record.sample_count)

    def families(self) -> List[Metric]:
        return list(self._families.values())


def _family_name(name: str, typ: str) -> str:
    # the exposition appends _total to counter family names itself
    if typ == "counter" and name.endswith("_total"):
        return name[:-6]
    return name


def _sample_name(name: str, typ: str) -> str:
    if typ == "counter" and not name.endswith("_total"):
        return name + "_total"
    return name


def _record_type(record: MetricRecord) -> str:
    if isinstance(record, SummaryRecord):
        return "summary"
    if isinstance(record, HistogramRecord):
        return "histogram"
    if record.value_type == MetricType.UNTYPED:
        return "unknown"
    return record.value_type.value
