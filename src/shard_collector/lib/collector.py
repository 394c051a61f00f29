"""
collector.py
- Composition root for shard store-size telemetry.
- Owns the HTTP session used against the cluster and an explicit
  OpenTelemetry MeterProvider (never set as the global provider).
- The `opensearch.shard.store.size` observable gauge is registered once at
  construction; `collect(ctx)` arms it with the driver's context, and every
  export cycle afterwards performs exactly one fresh fetch.
"""

import threading
from time import monotonic

import requests
from loguru import logger
from opentelemetry.metrics import Observation

from shard_collector.core import sample_state
from shard_collector.core.constants import (
    DEFAULT_EXPORT_INTERVAL_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    METER_NAME,
    STORE_SIZE_DESCRIPTION,
    STORE_SIZE_METRIC,
    STORE_SIZE_UNIT,
)
from shard_collector.core.errors import RegistrationError, SetupError, ShardCollectorError
from shard_collector.lib.shard_sampler import ShardSampler
from shard_collector.lib.telemetry import build_meter_provider, build_otlp_reader, build_resource


class ShardCollector:
    def __init__(
        self,
        endpoint,
        collector_endpoint,
        index_names=None,
        http_timeout=DEFAULT_HTTP_TIMEOUT_SECONDS,
        export_interval=DEFAULT_EXPORT_INTERVAL_SECONDS,
        insecure=True,
        service_name="opensearch-shard-collector",
        service_version="1.0.0",
        metric_reader=None,
        session=None,
    ):
        """
        Args:
            endpoint (str): Base URL of the cluster monitoring API.
            collector_endpoint (str): OTLP/gRPC target, host:port.
            index_names (list[str]): Indices sampled each export cycle.
            http_timeout (float): Timeout in seconds for each `_cat/shards` request.
            export_interval (float): Seconds between periodic exports.
            insecure (bool): Plaintext gRPC to the collector.
            metric_reader: Reader to use instead of the OTLP periodic reader.
            session (requests.Session): HTTP client; one is created (and owned) if omitted.

        Raises:
            SetupError: the resource, exporter or meter provider could not be built.
            RegistrationError: the gauge and its callback were rejected.
        """
        self.endpoint = endpoint
        self.collector_endpoint = collector_endpoint
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.sampler = ShardSampler.for_endpoint(self.session, endpoint, index_names, timeout=http_timeout)

        self._lock = threading.Lock()
        self._armed_ctx = None
        self._shut_down = False
        self.collect_calls = 0

        try:
            resource = build_resource(service_name, service_version)
            reader = metric_reader or build_otlp_reader(
                collector_endpoint, insecure=insecure, export_interval=export_interval
            )
            self.meter_provider = build_meter_provider(resource, reader)
        except Exception as e:
            self._close_session()
            raise SetupError(f"failed to create metrics export pipeline: {e}") from e

        self.meter = self.meter_provider.get_meter(METER_NAME)
        try:
            self.store_size_gauge = self.meter.create_observable_gauge(
                STORE_SIZE_METRIC,
                callbacks=[self._observe_store_size],
                unit=STORE_SIZE_UNIT,
                description=STORE_SIZE_DESCRIPTION,
            )
        except Exception as e:
            self.meter_provider.shutdown()
            self._close_session()
            raise RegistrationError(f"failed to create store size gauge: {e}") from e

        logger.info(
            f"[collector] Sampling {self.sampler.index_names} from {endpoint}, exporting to {collector_endpoint}"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    def collect(self, ctx):
        """
        Arm the store-size gauge with `ctx` for the following export cycles.

        Returns as soon as the callback is armed; sampling happens later on the
        reader's schedule. Calling it again replaces the armed context.

        Raises:
            RegistrationError: the collector has been shut down.
        """
        with self._lock:
            if self._shut_down:
                raise RegistrationError("cannot register store size callback: collector is shut down")
            self._armed_ctx = ctx
            self.collect_calls += 1
        logger.debug(f"[collector] Store size callback armed (collect #{self.collect_calls})")

    def sample(self, ctx):
        """Run one sample immediately, outside the export schedule."""
        return self.sampler.sample(ctx)

    def _observe_store_size(self, options):
        ctx = self._armed_ctx
        if ctx is None:
            return []

        cycle_ctx = ctx.with_timeout(options.timeout_millis / 1000)
        start_time = monotonic()
        try:
            measurements = self.sampler.sample(cycle_ctx)
        except ShardCollectorError as e:
            sample_state.record_failure(monotonic() - start_time)
            logger.error(f"[collector] Shard sample failed, nothing observed this cycle: {e}")
            raise
        sample_state.record_success(len(measurements), monotonic() - start_time)

        return [Observation(m.value, m.attributes) for m in measurements]

    def shutdown(self, ctx=None):
        """
        Flush and release the export pipeline, then close the HTTP session.

        The gauge is disarmed first so the final flush does not sample again.
        Safe to call more than once.
        """
        with self._lock:
            if self._shut_down:
                logger.debug("[collector] Shutdown already done")
                return
            self._shut_down = True
            self._armed_ctx = None

        timeout = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS
        if ctx is not None and ctx.remaining() is not None:
            timeout = ctx.remaining()

        logger.info("[collector] Shutting down metrics export pipeline...")
        try:
            self.meter_provider.shutdown(timeout_millis=timeout * 1000)
        finally:
            self._close_session()

    def _close_session(self):
        if self._owns_session:
            self.session.close()
