"""
config.py
- Defines global configuration values derived from environment variables.
- Values here are the defaults; an optional YAML file (see config_loader.py)
  can override them at startup.
"""

import os
import sys

from loguru import logger

from shard_collector.core.constants import (
    DEFAULT_COLLECT_INTERVAL_SECONDS,
    DEFAULT_EXPORT_INTERVAL_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_MONITORED_INDICES,
)


def env_flag(var, default="false"):
    return os.getenv(var, default).lower() == "true"


def env_float(var, default):
    try:
        return float(os.getenv(var, default))
    except ValueError:
        return float(default)


def env_list(var, default):
    raw = os.getenv(var)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# --- Runtime Behavior Flags ---
DEBUG = env_flag("DEBUG")
LOG_TO_FILE = env_flag("LOG_TO_FILE")
LOG_FILE = os.getenv("LOG_FILE", "/var/log/shard-collector/collector.log")
LOG_LEVEL = "DEBUG" if DEBUG else "INFO"  # Loguru string levels

# --- Source Cluster ---
OPENSEARCH_ENDPOINT = os.getenv("OPENSEARCH_ENDPOINT", "http://localhost:3000")
MONITORED_INDICES = env_list("MONITORED_INDICES", DEFAULT_MONITORED_INDICES)
HTTP_TIMEOUT_SECONDS = env_float("HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS)

# --- Export Pipeline ---
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "localhost:4317")
OTLP_INSECURE = env_flag("OTLP_INSECURE", "true")
EXPORT_INTERVAL_SECONDS = env_float("EXPORT_INTERVAL_SECONDS", DEFAULT_EXPORT_INTERVAL_SECONDS)
COLLECT_INTERVAL_SECONDS = env_float("COLLECT_INTERVAL_SECONDS", DEFAULT_COLLECT_INTERVAL_SECONDS)
SERVICE_NAME = os.getenv("SERVICE_NAME", "opensearch-shard-collector")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")

# --- Operational API ---
API_ENABLED = env_flag("API_ENABLED", "true")
API_PORT = int(env_float("API_PORT", 6060))
SENTRY_DSN = os.getenv("SENTRY_DSN")

# --- Config Paths ---
CONFIG_FILE = os.getenv("CONFIG_FILE", "/etc/shard-collector/collector.yml")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(level=LOG_LEVEL, log_to_file=LOG_TO_FILE, log_file=LOG_FILE):
    """Replace loguru's default sink with the collector's stderr (and optional file) sinks."""
    logger.remove()
    logger.add(sink=sys.stderr, level=level, format=LOG_FORMAT, colorize=True)
    if log_to_file:
        logger.add(log_file, level=level, format=LOG_FORMAT, rotation="10 MB", retention=5)
