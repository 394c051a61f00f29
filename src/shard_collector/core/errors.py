"""
errors.py
- Exception taxonomy for the shard collector.
- Size parse errors are raised per record; fetch/decode errors name the index
  that broke the cycle; registration/setup/config errors surface at the
  process boundary.
"""


class ShardCollectorError(Exception):
    """Base class for every error raised by the collector."""


# --- Size parsing ---

class SizeParseError(ShardCollectorError):
    pass


class UnknownUnit(SizeParseError):
    """The size string does not end in kb, mb or gb."""

    def __init__(self, raw):
        self.raw = raw
        super().__init__(f"unknown size unit in: {raw!r}")


class MalformedNumber(SizeParseError):
    """The numeric part left after stripping the unit is not a float."""

    def __init__(self, remainder):
        self.remainder = remainder
        super().__init__(f"failed to parse size value: {remainder!r}")


# --- Cluster access ---

class FetchError(ShardCollectorError):
    """Transport failure (or cancellation) while reading shards for an index."""

    def __init__(self, index, cause):
        self.index = index
        self.cause = cause
        super().__init__(f"failed to fetch shards for index '{index}': {cause}")


class DecodeError(ShardCollectorError):
    """The _cat/shards response for an index is not the expected JSON array."""

    def __init__(self, index, cause):
        self.index = index
        self.cause = cause
        super().__init__(f"failed to decode shards response for index '{index}': {cause}")


# --- Context ---

class ContextCancelled(ShardCollectorError):
    def __init__(self):
        super().__init__("context cancelled")


class DeadlineExceeded(ShardCollectorError):
    def __init__(self):
        super().__init__("context deadline exceeded")


# --- Export pipeline / process boundary ---

class RegistrationError(ShardCollectorError):
    """The metrics pipeline rejected (or can no longer accept) the gauge callback."""


class SetupError(ShardCollectorError):
    """Resource, exporter or meter provider construction failed."""


class ConfigError(ShardCollectorError):
    """Invalid collector settings."""
