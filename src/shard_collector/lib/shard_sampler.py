"""
shard_sampler.py
- One sampling cycle: fetch shard rows, convert store sizes to bytes and
  build one Measurement per shard.
- All-or-nothing: a fetch, decode or size parse failure for any shard fails
  the whole sample and no measurements are returned.
"""

from loguru import logger

from shard_collector.core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS, DEFAULT_MONITORED_INDICES
from shard_collector.core.models import Measurement
from shard_collector.lib.shard_fetcher import ShardFetcher
from shard_collector.lib.size_parser import parse_store_size


class ShardSampler:
    def __init__(self, fetch, index_names=None):
        """
        Args:
            fetch: callable(ctx, index_names) -> list[ShardRecord]
            index_names (list[str]): Indices sampled every cycle.
        """
        self.fetch = fetch
        self.index_names = list(index_names or DEFAULT_MONITORED_INDICES)

    @classmethod
    def for_endpoint(cls, client, endpoint, index_names=None, timeout=DEFAULT_HTTP_TIMEOUT_SECONDS):
        return cls(ShardFetcher(client, endpoint, timeout=timeout), index_names)

    def sample(self, ctx):
        shards = self.fetch(ctx, self.index_names)

        measurements = []
        for shard in shards:
            size_in_bytes = parse_store_size(shard.store_size)
            measurements.append(Measurement(size_in_bytes, shard.attributes()))

        logger.debug(f"[sampler] {len(measurements)} shard measurement(s) across {len(self.index_names)} index(es)")
        return measurements
