"""
Pytest Configuration and Shared Fixtures.

HTTP is stubbed with a minimal stand-in for requests.Session; exported
metrics are read back through OpenTelemetry's InMemoryMetricReader.
"""

from __future__ import annotations

import json

import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from shard_collector.core import sample_state
from shard_collector.core.constants import STORE_SIZE_METRIC
from shard_collector.core.context import CycleContext
from shard_collector.runner import shard_metrics

ENDPOINT = "http://opensearch:9200"


def shards_url(index: str) -> str:
    return f"{ENDPOINT}/_cat/shards/{index}?format=json"


class FakeResponse:
    def __init__(self, payload=None, text=None):
        self._payload = payload
        self._text = text
        self.closed = False

    def json(self):
        if self._text is not None:
            return json.loads(self._text)
        return self._payload

    def close(self):
        self.closed = True


class FakeSession:
    """Maps URLs to a JSON payload, a FakeResponse or an exception to raise."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        route = self.routes[url]
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(payload=route)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def shard_row(index="otlp-metrics", shard="0", prirep="p", state="STARTED",
              docs="1200", store="512kb", ip="10.0.0.5", node="node-1"):
    return {
        "index": index, "shard": shard, "prirep": prirep, "state": state,
        "docs": docs, "store": store, "ip": ip, "node": node,
    }


def gauge_points(reader):
    """Data points recorded for the store size gauge in one reader collection."""
    data = reader.get_metrics_data()
    points = []
    if data is None:
        return points
    for resource_metrics in data.resource_metrics:
        for scope_metrics in resource_metrics.scope_metrics:
            for metric in scope_metrics.metrics:
                if metric.name == STORE_SIZE_METRIC:
                    points.extend(metric.data.data_points)
    return points


@pytest.fixture
def metrics_rows():
    return [
        shard_row(shard="0", prirep="p", store="512kb"),
        shard_row(shard="0", prirep="r", store="1.5gb", ip="10.0.0.6", node="node-2"),
    ]


@pytest.fixture
def logs_rows():
    return [
        shard_row(index="otlp-logs", shard="0", prirep="p", store="3mb"),
        shard_row(index="otlp-logs", shard="1", prirep="p", store=""),
        shard_row(index="otlp-logs", shard="1", prirep="r", state="UNASSIGNED",
                  docs=None, store=None, ip=None, node=None),
    ]


@pytest.fixture
def cluster(metrics_rows, logs_rows) -> FakeSession:
    """Cluster answering for both default monitored indices."""
    return FakeSession({
        shards_url("otlp-metrics"): metrics_rows,
        shards_url("otlp-logs"): logs_rows,
    })


@pytest.fixture
def ctx() -> CycleContext:
    return CycleContext()


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture(autouse=True)
def reset_collect_counters(monkeypatch):
    """Collect and sample counters are module globals; isolate them per test."""
    monkeypatch.setattr(shard_metrics, "shard_collect_runs_total", 0)
    monkeypatch.setattr(shard_metrics, "shard_collect_errors_total", 0)
    monkeypatch.setattr(shard_metrics, "shard_collect_last_duration_seconds", 0.0)
    monkeypatch.setattr(shard_metrics, "shard_collect_last_success_timestamp", 0.0)
    monkeypatch.setattr(shard_metrics, "shard_collect_last_ok", True)
    sample_state.reset()
    yield
    sample_state.reset()
