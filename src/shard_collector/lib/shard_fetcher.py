"""
shard_fetcher.py
- Reads shard rows for each monitored index from the cluster's `_cat/shards` API.
- One sequential GET per index; the first failing index aborts the whole fetch
  and nothing gathered so far is returned.
- Requests honor the caller's CycleContext: a done context is never sent,
  each request timeout is capped by the context deadline, and a request in
  flight is abandoned as soon as the context is cancelled.
"""

from concurrent.futures import ThreadPoolExecutor, wait

import requests
from loguru import logger

from shard_collector.core.constants import CAT_SHARDS_PATH, DEFAULT_HTTP_TIMEOUT_SECONDS, FETCH_POLL_SECONDS
from shard_collector.core.errors import DeadlineExceeded, DecodeError, FetchError
from shard_collector.core.models import ShardRecord


def shard_url(endpoint, index):
    return endpoint.rstrip("/") + CAT_SHARDS_PATH.format(index=index)


def fetch_shard_info(ctx, client, endpoint, index_names, timeout=DEFAULT_HTTP_TIMEOUT_SECONDS):
    """
    Fetch and decode shard rows for every index, in order.

    Args:
        ctx (CycleContext): Cancellation/deadline for the whole fetch.
        client (requests.Session): HTTP client; only `.get(url, timeout=...)` is used.
        endpoint (str): Base URL of the cluster API (e.g. http://localhost:9200).
        index_names (list[str]): Indices to read, in the order results are wanted.
        timeout (float): Per-request timeout in seconds.

    Returns:
        list[ShardRecord]: Rows for all indices, index order then response order.

    Raises:
        FetchError: transport failure or done context for an index.
        DecodeError: the body for an index is not a JSON array of shard objects.
    """
    all_shards = []
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="shard-fetch")

    try:
        for index in index_names:
            url = shard_url(endpoint, index)
            error = ctx.err()
            if error is not None:
                raise FetchError(index, error) from error

            remaining = ctx.remaining()
            request_timeout = timeout if remaining is None else min(timeout, remaining)
            if request_timeout <= 0:
                raise FetchError(index, DeadlineExceeded())

            logger.debug(f"[fetcher] GET {url} (timeout {request_timeout:.1f}s)")
            response = _get(ctx, pool, client, url, index, request_timeout)
            try:
                shards = decode_shards(index, response)
            finally:
                response.close()

            logger.debug(f"[fetcher] {index}: {len(shards)} shard(s)")
            all_shards.extend(shards)
    finally:
        # an abandoned request finishes (or times out) on its own worker
        pool.shutdown(wait=False)

    return all_shards


def _get(ctx, pool, client, url, index, timeout):
    """Run the GET on a worker thread and stop waiting as soon as `ctx` is done."""
    future = pool.submit(client.get, url, timeout=timeout)

    while True:
        wait([future], timeout=FETCH_POLL_SECONDS)
        error = ctx.err()
        if error is not None:
            future.cancel()
            future.add_done_callback(_close_late_response)
            logger.debug(f"[fetcher] Abandoned GET {url}: {error}")
            raise FetchError(index, error) from error
        if future.done():
            break

    try:
        return future.result()
    except requests.RequestException as e:
        raise FetchError(index, e) from e


def _close_late_response(future):
    if future.cancelled() or future.exception() is not None:
        return
    future.result().close()


def decode_shards(index, response):
    try:
        payload = response.json()
    except ValueError as e:
        raise DecodeError(index, e) from e
    except requests.RequestException as e:
        # body read failed mid-stream
        raise FetchError(index, e) from e

    if not isinstance(payload, list):
        raise DecodeError(index, f"expected a JSON array, got {type(payload).__name__}")

    try:
        return [ShardRecord.from_json(row) for row in payload]
    except TypeError as e:
        raise DecodeError(index, e) from e


class ShardFetcher:
    """Binds a client, endpoint and timeout so samplers can call `fetch(ctx, index_names)`."""

    def __init__(self, client, endpoint, timeout=DEFAULT_HTTP_TIMEOUT_SECONDS):
        self.client = client
        self.endpoint = endpoint
        self.timeout = timeout

    def __call__(self, ctx, index_names):
        return fetch_shard_info(ctx, self.client, self.endpoint, index_names, timeout=self.timeout)
