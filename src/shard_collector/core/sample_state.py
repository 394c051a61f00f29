'''
sample_state.py
- In-memory record of how the store-size export cycles are going.
- Written by the gauge callback on the metric reader's thread; read by the
  /healthz and /metrics endpoints.
'''

from time import time

# --- Export Cycle Metrics ---
shard_sample_runs_total = 0
shard_sample_errors_total = 0
shard_sample_last_duration_seconds = 0.0
shard_sample_last_success_timestamp = 0.0
shard_sample_last_shard_count = 0
shard_sample_last_ok = True


def record_success(shard_count, duration):
    """Count a cycle whose observations were committed."""
    global shard_sample_runs_total, shard_sample_last_duration_seconds
    global shard_sample_last_success_timestamp, shard_sample_last_shard_count, shard_sample_last_ok

    shard_sample_runs_total += 1
    shard_sample_last_duration_seconds = duration
    shard_sample_last_success_timestamp = time()
    shard_sample_last_shard_count = shard_count
    shard_sample_last_ok = True


def record_failure(duration):
    """Count a cycle that committed nothing."""
    global shard_sample_errors_total, shard_sample_last_duration_seconds, shard_sample_last_ok

    shard_sample_errors_total += 1
    shard_sample_last_duration_seconds = duration
    shard_sample_last_ok = False


def reset():
    global shard_sample_runs_total, shard_sample_errors_total, shard_sample_last_duration_seconds
    global shard_sample_last_success_timestamp, shard_sample_last_shard_count, shard_sample_last_ok

    shard_sample_runs_total = 0
    shard_sample_errors_total = 0
    shard_sample_last_duration_seconds = 0.0
    shard_sample_last_success_timestamp = 0.0
    shard_sample_last_shard_count = 0
    shard_sample_last_ok = True
