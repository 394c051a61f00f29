"""
constants.py
- Project-wide constants shared by the sampler, collector and runners.
- Includes size-unit multipliers, the exported instrument definition and
  default cadence values.
"""

# --- Size Units (checked in this order, case-sensitive) ---
SIZE_UNITS = (
    ("kb", 1024),
    ("mb", 1024 * 1024),
    ("gb", 1024 * 1024 * 1024),
)

# --- Cluster API ---
CAT_SHARDS_PATH = "/_cat/shards/{index}?format=json"
DEFAULT_MONITORED_INDICES = ["otlp-metrics", "otlp-logs"]
DEFAULT_HTTP_TIMEOUT_SECONDS = 10
FETCH_POLL_SECONDS = 0.05  # cancellation check while a request is in flight

# --- Exported Instrument ---
METER_NAME = "opensearch.shards"
STORE_SIZE_METRIC = "opensearch.shard.store.size"
STORE_SIZE_UNIT = "bytes"
STORE_SIZE_DESCRIPTION = "Size of the shard store in bytes"

# --- Cadence ---
DEFAULT_COLLECT_INTERVAL_SECONDS = 60  # driver tick
DEFAULT_EXPORT_INTERVAL_SECONDS = 10   # periodic metric reader
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 30
