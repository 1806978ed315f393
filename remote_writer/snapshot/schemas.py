from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

NAME_LABEL = '__name__'


class MetricType(str, Enum):
    COUNTER = 'counter'
    GAUGE = 'gauge'
    UNTYPED = 'untyped'
    SUMMARY = 'summary'
    HISTOGRAM = 'histogram'


class SnapshotModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra='forbid')


class LabelPair(SnapshotModel):
    name: str
    value: str


class Counter(SnapshotModel):
    value: float


class Gauge(SnapshotModel):
    value: float


class Untyped(SnapshotModel):
    value: float


class Quantile(SnapshotModel):
    quantile: float
    value: float


class Summary(SnapshotModel):
    sample_count: int = 0
    sample_sum: float = 0.0
    quantiles: list[Quantile] = Field(default_factory=list)


class Bucket(SnapshotModel):
    upper_bound: float
    cumulative_count: int


class Histogram(SnapshotModel):
    sample_count: int = 0
    sample_sum: float = 0.0
    buckets: list[Bucket] = Field(default_factory=list)


class Metric(SnapshotModel):
    """One labeled instance of a family carrying exactly one typed value."""

    labels: list[LabelPair] = Field(default_factory=list)

    counter: Counter | None = None
    gauge: Gauge | None = None
    untyped: Untyped | None = None
    summary: Summary | None = None
    histogram: Histogram | None = None

    _payload_type: MetricType = PrivateAttr()

    @field_validator('labels')
    @classmethod
    def _reject_name_label(cls, labels: list[LabelPair]) -> list[LabelPair]:
        for label in labels:
            if label.name == NAME_LABEL:
                raise ValueError(f'{NAME_LABEL} is reserved for the family name')
        return labels

    @model_validator(mode='after')
    def _single_payload(self) -> 'Metric':
        payloads = [t for t in MetricType if getattr(self, t.value) is not None]
        if len(payloads) != 1:
            raise ValueError(
                f'Metric must carry exactly one value payload, got {len(payloads)}'
            )
        self._payload_type = payloads[0]
        return self

    @property
    def payload_type(self) -> MetricType:
        return self._payload_type


class MetricFamily(SnapshotModel):
    name: str
    # Unknown markers stay plain strings so the series builder can reject them
    type: MetricType | str = Field(union_mode='left_to_right')
    help: str = ''
    metrics: list[Metric] = Field(default_factory=list)

    @model_validator(mode='after')
    def _payloads_match_type(self) -> 'MetricFamily':
        if not isinstance(self.type, MetricType):
            return self
        for metric in self.metrics:
            if metric.payload_type is not self.type:
                raise ValueError(
                    f'Metric payload {metric.payload_type.value!r} does not match '
                    f'family type {self.type.value!r} in {self.name!r}'
                )
        return self
