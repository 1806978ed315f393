from collections.abc import Iterable, Sequence
import logging
from typing import Any, Protocol

from prometheus_client import REGISTRY, CollectorRegistry
from prometheus_client.metrics_core import Metric as PrometheusMetric
from prometheus_client.samples import Sample as PrometheusSample

from remote_writer.snapshot.schemas import (
    Bucket,
    Counter,
    Gauge,
    Histogram,
    LabelPair,
    Metric,
    MetricFamily,
    MetricType,
    Quantile,
    Summary,
    Untyped,
)

logger = logging.getLogger(__name__)

LabelKey = tuple[tuple[str, str], ...]


class Gatherer(Protocol):
    def gather(self) -> list[MetricFamily]: ...


class StaticGatherer:
    """Returns the same snapshot on every call."""

    def __init__(self, families: Sequence[MetricFamily]) -> None:
        self.families = list(families)

    def gather(self) -> list[MetricFamily]:
        return list(self.families)


def _label_key(labels: dict[str, str], *skip: str) -> LabelKey:
    return tuple((k, v) for k, v in labels.items() if k not in skip)


def _label_pairs(key: LabelKey) -> list[LabelPair]:
    return [LabelPair(name=k, value=v) for k, v in key]


def _samples_named(
    samples: Iterable[PrometheusSample], name: str
) -> Iterable[PrometheusSample]:
    return (s for s in samples if s.name == name)


def _simple_metrics(
    family: PrometheusMetric,
    sample_name: str,
    payload_type: type[Counter | Gauge | Untyped],
) -> list[Metric]:
    payload_field = payload_type.__name__.lower()
    return [
        Metric(
            labels=_label_pairs(_label_key(s.labels)),
            **{payload_field: payload_type(value=s.value)},
        )
        for s in _samples_named(family.samples, sample_name)
    ]


def _group(
    family: PrometheusMetric, skip_label: str
) -> dict[LabelKey, dict[str, Any]]:
    groups: dict[LabelKey, dict[str, Any]] = {}
    for sample in family.samples:
        key = _label_key(sample.labels, skip_label)
        group = groups.setdefault(
            key, {'count': 0, 'sum': 0.0, 'quantiles': [], 'buckets': []}
        )
        suffix = sample.name[len(family.name) :]
        if suffix in ('_count', '_gcount'):
            group['count'] = int(sample.value)
        elif suffix in ('_sum', '_gsum'):
            group['sum'] = sample.value
        elif suffix == '_bucket':
            group['buckets'].append(
                Bucket(
                    upper_bound=float(sample.labels['le']),
                    cumulative_count=int(sample.value),
                )
            )
        elif suffix == '' and 'quantile' in sample.labels:
            group['quantiles'].append(
                Quantile(
                    quantile=float(sample.labels['quantile']), value=sample.value
                )
            )
    return groups


def _summary_metrics(family: PrometheusMetric) -> list[Metric]:
    return [
        Metric(
            labels=_label_pairs(key),
            summary=Summary(
                sample_count=group['count'],
                sample_sum=group['sum'],
                quantiles=group['quantiles'],
            ),
        )
        for key, group in _group(family, 'quantile').items()
    ]


def _histogram_metrics(family: PrometheusMetric) -> list[Metric]:
    return [
        Metric(
            labels=_label_pairs(key),
            histogram=Histogram(
                sample_count=group['count'],
                sample_sum=group['sum'],
                buckets=group['buckets'],
            ),
        )
        for key, group in _group(family, 'le').items()
    ]


def convert_prometheus_metric(family: PrometheusMetric) -> MetricFamily:
    if family.type == 'counter':
        # prometheus_client strips the suffix from counter family names
        name = f'{family.name}_total'
        return MetricFamily(
            name=name,
            type=MetricType.COUNTER,
            help=family.documentation,
            metrics=_simple_metrics(family, name, Counter),
        )
    if family.type == 'gauge':
        return MetricFamily(
            name=family.name,
            type=MetricType.GAUGE,
            help=family.documentation,
            metrics=_simple_metrics(family, family.name, Gauge),
        )
    if family.type == 'unknown':
        return MetricFamily(
            name=family.name,
            type=MetricType.UNTYPED,
            help=family.documentation,
            metrics=_simple_metrics(family, family.name, Untyped),
        )
    if family.type == 'summary':
        return MetricFamily(
            name=family.name,
            type=MetricType.SUMMARY,
            help=family.documentation,
            metrics=_summary_metrics(family),
        )
    if family.type in ('histogram', 'gaugehistogram'):
        return MetricFamily(
            name=family.name,
            type=MetricType.HISTOGRAM,
            help=family.documentation,
            metrics=_histogram_metrics(family),
        )
    if family.type == 'info':
        # Info is exposed as a gauge with the suffix appended to the name
        name = f'{family.name}_info'
        return MetricFamily(
            name=name,
            type=MetricType.GAUGE,
            help=family.documentation,
            metrics=_simple_metrics(family, name, Gauge),
        )
    if family.type == 'stateset':
        return MetricFamily(
            name=family.name,
            type=MetricType.GAUGE,
            help=family.documentation,
            metrics=_simple_metrics(family, family.name, Gauge),
        )
    # Types outside the exposition format keep their own marker
    return MetricFamily(
        name=family.name,
        type=family.type,
        help=family.documentation,
        metrics=[
            Metric(
                labels=_label_pairs(_label_key(s.labels)),
                untyped=Untyped(value=s.value),
            )
            for s in family.samples
        ],
    )


class RegistryGatherer:
    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.registry = registry

    def gather(self) -> list[MetricFamily]:
        families = [convert_prometheus_metric(m) for m in self.registry.collect()]
        logger.debug('Metrics gathered', extra={'family_count': len(families)})
        return families
