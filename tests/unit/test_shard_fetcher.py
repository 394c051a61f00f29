"""
Unit Tests for the _cat/shards fetcher.

Test Aspects Covered:
    ✅ Business Logic: URL shape, ordering, record decoding
    ✅ Edge Cases: null/missing fields, trailing slash on endpoint
    ✅ Error Handling: transport, decode and cancellation failures
"""

from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest
import requests

from shard_collector.core.context import CycleContext
from shard_collector.core.errors import ContextCancelled, DecodeError, DeadlineExceeded, FetchError
from shard_collector.core.models import ShardRecord
from shard_collector.lib.shard_fetcher import ShardFetcher, fetch_shard_info, shard_url
from tests.conftest import ENDPOINT, FakeResponse, FakeSession, shard_row, shards_url

INDICES = ["otlp-metrics", "otlp-logs"]


class TestShardUrl:
    def test_format(self) -> None:
        assert shard_url(ENDPOINT, "otlp-logs") == f"{ENDPOINT}/_cat/shards/otlp-logs?format=json"

    def test_trailing_slash(self) -> None:
        assert shard_url(ENDPOINT + "/", "otlp-logs") == f"{ENDPOINT}/_cat/shards/otlp-logs?format=json"


class TestFetchShardInfo:
    """Test cases for the sequential per-index fetch."""

    def test_concatenates_in_index_then_response_order(self, cluster, ctx, metrics_rows, logs_rows) -> None:
        shards = fetch_shard_info(ctx, cluster, ENDPOINT, INDICES)

        assert [url for url, _ in cluster.calls] == [shards_url(i) for i in INDICES]
        assert len(shards) == len(metrics_rows) + len(logs_rows)
        assert [s.index_name for s in shards] == ["otlp-metrics"] * 2 + ["otlp-logs"] * 3
        assert [(s.shard_id, s.role) for s in shards[:2]] == [("0", "p"), ("0", "r")]

    def test_decodes_fields(self, cluster, ctx) -> None:
        first = fetch_shard_info(ctx, cluster, ENDPOINT, INDICES)[0]

        assert first == ShardRecord(
            index_name="otlp-metrics",
            shard_id="0",
            role="p",
            state="STARTED",
            document_count="1200",
            store_size="512kb",
            node_ip="10.0.0.5",
            node_name="node-1",
        )

    def test_null_fields_become_empty(self, cluster, ctx) -> None:
        unassigned = fetch_shard_info(ctx, cluster, ENDPOINT, INDICES)[-1]

        assert unassigned.state == "UNASSIGNED"
        assert (unassigned.store_size, unassigned.node_ip, unassigned.node_name) == ("", "", "")

    def test_missing_and_extra_keys(self, ctx) -> None:
        session = FakeSession({shards_url("a"): [{"index": "a", "shard": "0", "unassigned.reason": "NODE_LEFT"}]})

        (record,) = fetch_shard_info(ctx, session, ENDPOINT, ["a"])

        assert record.index_name == "a"
        assert record.store_size == ""

    def test_shard_and_docs_stay_strings(self, ctx) -> None:
        session = FakeSession({shards_url("a"): [shard_row(index="a", shard="n/a", docs="-")]})

        (record,) = fetch_shard_info(ctx, session, ENDPOINT, ["a"])

        assert record.shard_id == "n/a"
        assert record.document_count == "-"

    def test_uses_timeout(self, cluster, ctx) -> None:
        fetch_shard_info(ctx, cluster, ENDPOINT, INDICES, timeout=10)

        assert all(timeout == 10 for _, timeout in cluster.calls)

    def test_deadline_caps_timeout(self, cluster) -> None:
        ctx = CycleContext(timeout=2)

        fetch_shard_info(ctx, cluster, ENDPOINT, INDICES, timeout=10)

        assert all(0 < timeout <= 2 for _, timeout in cluster.calls)

    def test_empty_index_list(self, ctx) -> None:
        assert fetch_shard_info(ctx, FakeSession(), ENDPOINT, []) == []

    def test_responses_are_closed(self, ctx) -> None:
        response = FakeResponse(payload=[shard_row(index="a")])
        session = FakeSession({shards_url("a"): response})

        fetch_shard_info(ctx, session, ENDPOINT, ["a"])

        assert response.closed


class TestFetchErrors:
    """Any failing index aborts the whole fetch."""

    def test_transport_error_on_second_index(self, metrics_rows, ctx) -> None:
        """
        SCENARIO: First index answers, second raises a connection error
        EXPECTED: FetchError naming the second index, nothing returned
        """
        session = FakeSession({
            shards_url("otlp-metrics"): metrics_rows,
            shards_url("otlp-logs"): requests.ConnectionError("connection refused"),
        })

        with pytest.raises(FetchError) as excinfo:
            fetch_shard_info(ctx, session, ENDPOINT, INDICES)

        assert excinfo.value.index == "otlp-logs"
        assert isinstance(excinfo.value.cause, requests.ConnectionError)
        assert len(session.calls) == 2

    def test_timeout_is_fetch_error(self, ctx) -> None:
        session = FakeSession({shards_url("a"): requests.Timeout("read timed out")})

        with pytest.raises(FetchError):
            fetch_shard_info(ctx, session, ENDPOINT, ["a"])

    def test_stops_at_first_failure(self, ctx) -> None:
        session = FakeSession({
            shards_url("a"): requests.ConnectionError("down"),
            shards_url("b"): [],
        })

        with pytest.raises(FetchError):
            fetch_shard_info(ctx, session, ENDPOINT, ["a", "b"])

        assert len(session.calls) == 1

    def test_non_array_body(self, ctx) -> None:
        session = FakeSession({shards_url("a"): {"error": "index_not_found_exception", "status": 404}})

        with pytest.raises(DecodeError) as excinfo:
            fetch_shard_info(ctx, session, ENDPOINT, ["a"])

        assert excinfo.value.index == "a"

    def test_invalid_json(self, ctx) -> None:
        session = FakeSession({shards_url("a"): FakeResponse(text="<html>bad gateway</html>")})

        with pytest.raises(DecodeError):
            fetch_shard_info(ctx, session, ENDPOINT, ["a"])

    @pytest.mark.parametrize("row", [shard_row(shard=3), shard_row(store=1024), "not-an-object"])
    def test_mismatched_field_types(self, ctx, row) -> None:
        session = FakeSession({shards_url("a"): [shard_row(), row]})

        with pytest.raises(DecodeError):
            fetch_shard_info(ctx, session, ENDPOINT, ["a"])

    def test_cancelled_context_sends_nothing(self, cluster) -> None:
        ctx = CycleContext()
        ctx.cancel()

        with pytest.raises(FetchError) as excinfo:
            fetch_shard_info(ctx, cluster, ENDPOINT, INDICES)

        assert isinstance(excinfo.value.cause, ContextCancelled)
        assert cluster.calls == []

    def test_expired_deadline(self, cluster) -> None:
        ctx = CycleContext(timeout=0)

        with pytest.raises(FetchError) as excinfo:
            fetch_shard_info(ctx, cluster, ENDPOINT, INDICES)

        assert isinstance(excinfo.value.cause, DeadlineExceeded)

    def test_cancel_during_request_discards_result(self, metrics_rows) -> None:
        ctx = CycleContext()

        class CancellingSession(FakeSession):
            def get(self, url, timeout=None):
                response = super().get(url, timeout=timeout)
                ctx.cancel()
                return response

        session = CancellingSession({shards_url("otlp-metrics"): metrics_rows})

        with pytest.raises(FetchError) as excinfo:
            fetch_shard_info(ctx, session, ENDPOINT, ["otlp-metrics", "otlp-logs"])

        assert excinfo.value.index == "otlp-metrics"
        assert isinstance(excinfo.value.cause, ContextCancelled)


class TestShardFetcher:
    def test_binds_client_and_endpoint(self, cluster, ctx) -> None:
        fetcher = ShardFetcher(cluster, ENDPOINT, timeout=4)

        shards = fetcher(ctx, ["otlp-logs"])

        assert len(shards) == 3
        assert cluster.calls == [(shards_url("otlp-logs"), 4)]


class SlowShardsHandler(BaseHTTPRequestHandler):
    """Answers every request with an empty shard list after `delay` seconds."""

    delay = 3.0

    def do_GET(self):
        time.sleep(self.delay)
        try:
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.end_headers()
            self.wfile.write(b"[]")
        except OSError:
            pass  # client already gave up

    def log_message(self, format, *args):
        pass


class SlowClusterServer(ThreadingHTTPServer):
    block_on_close = False


@pytest.fixture
def slow_cluster():
    server = SlowClusterServer(("127.0.0.1", 0), SlowShardsHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}"
    server.shutdown()
    server.server_close()


class TestInFlightCancellation:
    """A request already on the wire is abandoned when the context is cancelled."""

    def test_cancel_aborts_slow_request(self, slow_cluster) -> None:
        """
        SCENARIO: Cluster takes 3s to answer, context cancelled after 0.2s
        EXPECTED: FetchError(ContextCancelled) well before the server replies
        """
        ctx = CycleContext()
        timer = threading.Timer(0.2, ctx.cancel)

        with requests.Session() as session:
            timer.start()
            start = time.monotonic()
            with pytest.raises(FetchError) as excinfo:
                fetch_shard_info(ctx, session, slow_cluster, ["otlp-metrics"], timeout=10)
            elapsed = time.monotonic() - start
            timer.join()

        assert elapsed < 1.0
        assert excinfo.value.index == "otlp-metrics"
        assert isinstance(excinfo.value.cause, ContextCancelled)

    def test_deadline_bounds_slow_request(self, slow_cluster) -> None:
        ctx = CycleContext(timeout=0.3)

        with requests.Session() as session:
            start = time.monotonic()
            with pytest.raises(FetchError):
                fetch_shard_info(ctx, session, slow_cluster, ["otlp-metrics"], timeout=10)
            elapsed = time.monotonic() - start

        assert elapsed < 1.5

    def test_response_arriving_after_cancel_is_closed(self, metrics_rows) -> None:
        ctx = CycleContext()
        response = FakeResponse(payload=metrics_rows)
        release = threading.Event()

        class HeldSession(FakeSession):
            def get(self, url, timeout=None):
                release.wait(5)
                return super().get(url, timeout=timeout)

        session = HeldSession({shards_url("otlp-metrics"): response})
        threading.Timer(0.1, ctx.cancel).start()

        with pytest.raises(FetchError):
            fetch_shard_info(ctx, session, ENDPOINT, ["otlp-metrics"])

        release.set()
        for _ in range(100):
            if response.closed:
                break
            time.sleep(0.01)
        assert response.closed


class TestExhaustedDeadline:
    def test_zero_time_left_is_fetch_error(self, cluster) -> None:
        """
        SCENARIO: Context not yet done but no time left for the request
        EXPECTED: FetchError(DeadlineExceeded), no request sent with timeout 0
        """

        class EdgeOfDeadline(CycleContext):
            def err(self):
                return None

            def remaining(self):
                return 0.0

        with pytest.raises(FetchError) as excinfo:
            fetch_shard_info(EdgeOfDeadline(), cluster, ENDPOINT, INDICES)

        assert isinstance(excinfo.value.cause, DeadlineExceeded)
        assert cluster.calls == []
