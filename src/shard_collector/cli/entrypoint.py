#!/usr/bin/env python3
"""
entrypoint.py
- Command router for the `shard-collector` console script.
- Usage:
    shard-collector run            Run the collector service
    shard-collector sample         Sample shard sizes once and print them
    shard-collector parse <size>   Convert a store size (e.g. 3.2gb) to bytes
"""

import sys

import requests
from loguru import logger

from shard_collector.core.config import configure_logging
from shard_collector.core.config_loader import load_settings
from shard_collector.core.context import background
from shard_collector.core.errors import ShardCollectorError
from shard_collector.lib.shard_sampler import ShardSampler
from shard_collector.lib.size_parser import parse_store_size


def usage():
    print("Usage: shard-collector <command> [args]")
    print("Available commands:")
    print("  run            Run the collector service")
    print("  sample         Sample shard store sizes once and print them")
    print("  parse <size>   Convert a store size to bytes")
    sys.exit(1)


def sample():
    configure_logging(level="WARNING")
    try:
        settings = load_settings()
        ctx = background().with_timeout(settings.http_timeout * len(settings.monitored_indices))
        with requests.Session() as session:
            sampler = ShardSampler.for_endpoint(
                session, settings.opensearch_endpoint, settings.monitored_indices, timeout=settings.http_timeout
            )
            measurements = sampler.sample(ctx)
    except ShardCollectorError as e:
        logger.error(f"❌ Sample failed: {e}")
        return 1

    for m in measurements:
        attrs = m.attributes
        print(f"{attrs['index']}\t{attrs['shard']}\t{attrs['prirep']}\t{attrs['state']}\t{attrs['node']}\t{m.value:.0f}")
    return 0


def parse(raw):
    try:
        print(f"{parse_store_size(raw):.0f}")
    except ShardCollectorError as e:
        print(f"❌ {e}")
        return 1
    return 0


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        usage()

    command = argv[0]

    if command == "run" and len(argv) == 1:
        from shard_collector.main import run
        run()
        return 0
    if command == "sample" and len(argv) == 1:
        return sample()
    if command == "parse" and len(argv) == 2:
        return parse(argv[1])

    print(f"❌ Unknown command: {' '.join(argv)}")
    usage()


if __name__ == "__main__":
    sys.exit(main())
