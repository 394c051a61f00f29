"""
config_loader.py
- Loads and previews the optional collector YAML file.
- Merges file values over the environment defaults from config.py and
  validates the result into a CollectorSettings object.
"""

import os
from dataclasses import dataclass, field
from typing import List

import yaml
from loguru import logger

from shard_collector.core import config
from shard_collector.core.errors import ConfigError


@dataclass
class CollectorSettings:
    opensearch_endpoint: str = config.OPENSEARCH_ENDPOINT
    monitored_indices: List[str] = field(default_factory=lambda: list(config.MONITORED_INDICES))
    http_timeout: float = config.HTTP_TIMEOUT_SECONDS
    otlp_endpoint: str = config.OTLP_ENDPOINT
    otlp_insecure: bool = config.OTLP_INSECURE
    export_interval: float = config.EXPORT_INTERVAL_SECONDS
    collect_interval: float = config.COLLECT_INTERVAL_SECONDS
    service_name: str = config.SERVICE_NAME
    service_version: str = config.SERVICE_VERSION
    api_enabled: bool = config.API_ENABLED
    api_port: int = config.API_PORT

    def validate(self):
        if not self.opensearch_endpoint:
            raise ConfigError("opensearch endpoint must not be empty")
        if not self.otlp_endpoint:
            raise ConfigError("otlp endpoint must not be empty")
        if not self.monitored_indices:
            raise ConfigError("at least one monitored index is required")
        for name, value in (
            ("http_timeout", self.http_timeout),
            ("export_interval", self.export_interval),
            ("collect_interval", self.collect_interval),
        ):
            if value <= 0:
                raise ConfigError(f"{name} must be positive, got {value}")
        return self


def load_yaml(path):
    """Safely load a YAML file and return a parsed dict. Returns {} on failure."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"[config] Failed to load {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"[config] Expected a mapping at the top of {path}, got {type(data).__name__}")
        return {}
    return data


def preview_yaml(path, name=None):
    """
    Log a human-readable preview of the YAML file contents for debugging.
    Typically used during startup to verify config presence and structure.
    """
    if not os.path.exists(path):
        logger.warning(f"[config] File not found: {path}")
        return

    try:
        with open(path, "r") as f:
            contents = f.read()
        logger.info(f"\n📄 Loaded {name or path}:\n" + "\n".join(f"│ {line}" for line in contents.strip().splitlines()))
    except Exception as e:
        logger.error(f"[config] Could not preview {path}: {e}")


def _section(data, key):
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return section


def settings_from_dict(data):
    """Overlay a parsed YAML mapping on the environment defaults."""
    settings = CollectorSettings()
    opensearch = _section(data, "opensearch")
    otlp = _section(data, "otlp")
    service = _section(data, "service")
    api = _section(data, "api")

    try:
        if "endpoint" in opensearch:
            settings.opensearch_endpoint = str(opensearch["endpoint"])
        if "indices" in opensearch:
            indices = opensearch["indices"]
            if isinstance(indices, str):
                indices = [indices]
            settings.monitored_indices = [str(i) for i in indices]
        if "timeout_seconds" in opensearch:
            settings.http_timeout = float(opensearch["timeout_seconds"])

        if "endpoint" in otlp:
            settings.otlp_endpoint = str(otlp["endpoint"])
        if "insecure" in otlp:
            settings.otlp_insecure = bool(otlp["insecure"])
        if "export_interval_seconds" in otlp:
            settings.export_interval = float(otlp["export_interval_seconds"])

        if "collect_interval_seconds" in data:
            settings.collect_interval = float(data["collect_interval_seconds"])

        if "name" in service:
            settings.service_name = str(service["name"])
        if "version" in service:
            settings.service_version = str(service["version"])

        if "enabled" in api:
            settings.api_enabled = bool(api["enabled"])
        if "port" in api:
            settings.api_port = int(api["port"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid collector setting: {e}") from e

    return settings.validate()


def load_settings(path=None):
    """
    Build the collector settings from the environment and, when present, the YAML file.

    Args:
        path (str): YAML file to read. Defaults to CONFIG_FILE.

    Returns:
        CollectorSettings: validated settings.

    Raises:
        ConfigError: a value is missing, malformed or out of range.
    """
    path = path or config.CONFIG_FILE
    if os.path.exists(path):
        logger.info(f"[config] Loading collector settings from {path}")
        data = load_yaml(path)
    else:
        logger.debug(f"[config] No config file at {path}, using environment defaults")
        data = {}
    return settings_from_dict(data)
