from collections.abc import Callable, Sequence
import logging
import time

from remote_writer.exceptions import UnknownMetricTypeError
from remote_writer.prompb.schemas import Label, Sample, TimeSeries, WriteRequest
from remote_writer.snapshot.schemas import (
    NAME_LABEL,
    Metric,
    MetricFamily,
    MetricType,
)

logger = logging.getLogger(__name__)

ValueExtractor = Callable[[Metric], float]

_VALUE_EXTRACTORS: dict[MetricType, ValueExtractor] = {
    MetricType.COUNTER: lambda m: m.counter.value,  # type: ignore[union-attr]
    MetricType.GAUGE: lambda m: m.gauge.value,  # type: ignore[union-attr]
    MetricType.UNTYPED: lambda m: m.untyped.value,  # type: ignore[union-attr]
    MetricType.SUMMARY: lambda m: m.summary.sample_sum,  # type: ignore[union-attr]
    MetricType.HISTOGRAM: lambda m: m.histogram.sample_sum,  # type: ignore[union-attr]
}


def current_timestamp_ms() -> int:
    return time.time_ns() // 1_000_000


def _value_extractor(family: MetricFamily) -> ValueExtractor:
    extractor = (
        _VALUE_EXTRACTORS.get(family.type)
        if isinstance(family.type, MetricType)
        else None
    )
    if extractor is None:
        raise UnknownMetricTypeError(str(family.type), family.name)
    return extractor


def _labels_for(family: MetricFamily, metric: Metric) -> list[Label]:
    labels = [Label(name=NAME_LABEL, value=family.name)]
    labels.extend(Label(name=lp.name, value=lp.value) for lp in metric.labels)
    return labels


def build_timeseries(
    families: Sequence[MetricFamily], timestamp_ms: int
) -> list[TimeSeries]:
    all_series: list[TimeSeries] = []

    for family in families:
        extractor = _value_extractor(family)
        for metric in family.metrics:
            sample = Sample(value=extractor(metric), timestamp=timestamp_ms)
            all_series.append(
                TimeSeries(labels=_labels_for(family, metric), samples=[sample])
            )

    logger.info(
        'Writing metrics',
        extra={'series_count': len(all_series), 'timestamp_ms': timestamp_ms},
    )
    return all_series


def convert_families_to_write_request(
    families: Sequence[MetricFamily], timestamp_ms: int
) -> WriteRequest:
    return WriteRequest(timeseries=build_timeseries(families, timestamp_ms))
