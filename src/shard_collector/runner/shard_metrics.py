#!/usr/bin/env python3
"""
shard_metrics.py
- Drives the shard collector on a fixed cadence (COLLECT_INTERVAL_SECONDS).
- Each tick re-arms the store-size gauge; the export pipeline samples on its
  own schedule in between.
- Failures are logged and counted; the loop keeps running until the context
  is cancelled.
- Exposes basic metrics for Prometheus.
"""

import asyncio
from time import time

from loguru import logger

from shard_collector.core import sample_state
from shard_collector.core.config import COLLECT_INTERVAL_SECONDS

# --- Collect Loop Metrics ---
shard_collect_runs_total = 0
shard_collect_errors_total = 0
shard_collect_last_duration_seconds = 0.0
shard_collect_last_success_timestamp = 0.0
shard_collect_last_ok = True


def tick(collector, ctx):
    """Run one guarded collect. Returns True on success."""
    global shard_collect_runs_total, shard_collect_errors_total
    global shard_collect_last_duration_seconds, shard_collect_last_success_timestamp, shard_collect_last_ok

    start_time = time()
    try:
        collector.collect(ctx)
    except Exception as e:
        shard_collect_errors_total += 1
        shard_collect_last_ok = False
        logger.error(f"[shard_metrics] Failed to collect metrics: {e}")
        return False
    finally:
        shard_collect_last_duration_seconds = time() - start_time

    shard_collect_runs_total += 1
    shard_collect_last_success_timestamp = time()
    shard_collect_last_ok = True
    return True


async def run(collector, ctx, interval=COLLECT_INTERVAL_SECONDS):
    logger.info(f"[shard_metrics] Collecting shard metrics every {interval:g}s")

    while not ctx.done():
        tick(collector, ctx)
        if await asyncio.to_thread(ctx.wait, interval):
            break

    logger.info("[shard_metrics] Context done, stopping collection loop.")


def render_metrics():
    """Prometheus text exposition of the collect loop counters."""
    return f"""# HELP shard_collect_runs_total Total successful collect ticks
# TYPE shard_collect_runs_total counter
shard_collect_runs_total {shard_collect_runs_total}
# HELP shard_collect_errors_total Total failed collect ticks
# TYPE shard_collect_errors_total counter
shard_collect_errors_total {shard_collect_errors_total}
# HELP shard_collect_last_duration_seconds Duration of the last collect tick in seconds
# TYPE shard_collect_last_duration_seconds gauge
shard_collect_last_duration_seconds {shard_collect_last_duration_seconds}
# HELP shard_collect_last_success_timestamp_seconds Unix time of the last successful collect tick
# TYPE shard_collect_last_success_timestamp_seconds gauge
shard_collect_last_success_timestamp_seconds {shard_collect_last_success_timestamp}
# HELP shard_sample_runs_total Export cycles whose shard observations were committed
# TYPE shard_sample_runs_total counter
shard_sample_runs_total {sample_state.shard_sample_runs_total}
# HELP shard_sample_errors_total Export cycles that failed and committed no observations
# TYPE shard_sample_errors_total counter
shard_sample_errors_total {sample_state.shard_sample_errors_total}
# HELP shard_sample_last_duration_seconds Duration of the last shard sample in seconds
# TYPE shard_sample_last_duration_seconds gauge
shard_sample_last_duration_seconds {sample_state.shard_sample_last_duration_seconds}
# HELP shard_sample_last_success_timestamp_seconds Unix time of the last committed shard sample
# TYPE shard_sample_last_success_timestamp_seconds gauge
shard_sample_last_success_timestamp_seconds {sample_state.shard_sample_last_success_timestamp}
# HELP shard_sample_last_shard_count Shards observed in the last committed sample
# TYPE shard_sample_last_shard_count gauge
shard_sample_last_shard_count {sample_state.shard_sample_last_shard_count}
"""
