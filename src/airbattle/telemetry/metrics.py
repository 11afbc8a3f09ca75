"""Metrics helper utilities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

from opentelemetry import metrics as otel_metrics
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.metrics import Counter, Histogram, Meter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource

if TYPE_CHECKING:  # pragma: no cover
    from .config import TelemetryConfig

_METER_PROVIDER: MeterProvider | None = None
_METER: Meter | None = None
_INSTRUMENTS: dict[str, Counter] = {}
_HISTOGRAMS: dict[str, Histogram] = {}

MetricAttributes = Mapping[str, str | bool | int | float]


def get_meter(name: str = "airbattle") -> Meter:
    global _METER
    if _METER is None:
        _METER = otel_metrics.get_meter(name)
    return _METER


def init_metrics(config: TelemetryConfig) -> Meter:
    global _METER_PROVIDER, _METER, _INSTRUMENTS, _HISTOGRAMS

    readers = []
    if config.otlp_metrics_endpoint:
        exporter = OTLPMetricExporter(endpoint=config.otlp_metrics_endpoint, insecure=True)
        readers.append(PeriodicExportingMetricReader(exporter, export_interval_millis=5000))

    provider = MeterProvider(resource=Resource.create(config.resource()), metric_readers=readers)
    otel_metrics.set_meter_provider(provider)

    _METER_PROVIDER = provider
    _METER = provider.get_meter(config.service_name)
    _INSTRUMENTS = {}
    _HISTOGRAMS = {}
    return _METER


def record_game_metric(name: str, value: float, attrs: MetricAttributes | None = None) -> None:
    """Add ``value`` to the counter ``name``, creating it on first use."""
    instrument = _INSTRUMENTS.get(name)
    if instrument is None:
        instrument = get_meter().create_counter(name)
        _INSTRUMENTS[name] = instrument
    instrument.add(value, attributes=attrs or {})


def record_latency(name: str, value_ms: float, attrs: MetricAttributes | None = None) -> None:
    """Record a latency sample (milliseconds) in the histogram ``name``."""
    histogram = _HISTOGRAMS.get(name)
    if histogram is None:
        histogram = get_meter().create_histogram(name, unit="ms")
        _HISTOGRAMS[name] = histogram
    histogram.record(value_ms, attributes=attrs or {})
