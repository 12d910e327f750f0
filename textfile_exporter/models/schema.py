from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel

from textfile_exporter.config import METRICS_NAMESPACE, TEXTFILE_DIRECTORY


class CollectorSettings(BaseModel):
    directory: str = TEXTFILE_DIRECTORY
    namespace: str = METRICS_NAMESPACE


class MetricType(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    UNTYPED = "untyped"
    SUMMARY = "summary"
    HISTOGRAM = "histogram"


# ---- parsed input ----

class SummaryValue(BaseModel):
    sample_count: float = 0.0
    sample_sum: float = 0.0
    quantiles: Dict[float, float] = {}


class HistogramValue(BaseModel):
    sample_count: float = 0.0
    sample_sum: float = 0.0
    buckets: Dict[float, float] = {}  # upper bound -> cumulative count


class Series(BaseModel):
    labels: Dict[str, str] = {}
    value: Union[SummaryValue, HistogramValue, float] = 0.0
    source_file: str = ""
    timestamp: Optional[float] = None


class MetricFamily(BaseModel):
    name: str
    # kept as the declared string so unrecognised types reach the emitter
    type: str = MetricType.UNTYPED.value
    help: Optional[str] = None
    series: List[Series] = []


# ---- emitted records ----

class Descriptor(BaseModel):
    name: str
    help: str
    label_names: List[str] = []


class ScalarRecord(BaseModel):
    kind: Literal["scalar"] = "scalar"
    descriptor: Descriptor
    value_type: MetricType
    value: float
    label_values: List[str] = []


class SummaryRecord(BaseModel):
    kind: Literal["summary"] = "summary"
    descriptor: Descriptor
    sample_count: float
    sample_sum: float
    quantiles: Dict[float, float] = {}
    label_values: List[str] = []


class HistogramRecord(BaseModel):
    kind: Literal["histogram"] = "histogram"
    descriptor: Descriptor
    sample_count: float
    sample_sum: float
    buckets: Dict[float, float] = {}
    label_values: List[str] = []


MetricRecord = Union[ScalarRecord, SummaryRecord, HistogramRecord]
