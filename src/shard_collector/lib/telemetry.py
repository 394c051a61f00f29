"""
telemetry.py
- Builds the OpenTelemetry export pipeline owned by a collector:
  resource (service name/version) -> OTLP/gRPC exporter -> periodic reader
  -> meter provider.
- The provider is returned to the caller and never installed globally.
"""

from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource

from shard_collector.core.constants import DEFAULT_EXPORT_INTERVAL_SECONDS


def build_resource(service_name, service_version):
    return Resource.create({SERVICE_NAME: service_name, SERVICE_VERSION: service_version})


def build_otlp_reader(collector_endpoint, insecure=True, export_interval=DEFAULT_EXPORT_INTERVAL_SECONDS):
    """Periodic reader pushing to an OTLP/gRPC collector (e.g. localhost:4317)."""
    exporter = OTLPMetricExporter(endpoint=collector_endpoint, insecure=insecure)
    return PeriodicExportingMetricReader(exporter, export_interval_millis=export_interval * 1000)


def build_meter_provider(resource, reader):
    return MeterProvider(resource=resource, metric_readers=[reader])
