"""
models.py
- Data shapes flowing through one sampling cycle.
- ShardRecord mirrors a single row of `_cat/shards?format=json`.
- Measurement is one gauge value plus its string attributes.
"""

from dataclasses import dataclass
from typing import Dict, NamedTuple

# ShardRecord field -> _cat/shards JSON key
JSON_FIELDS = {
    "index_name": "index",
    "shard_id": "shard",
    "role": "prirep",
    "state": "state",
    "document_count": "docs",
    "store_size": "store",
    "node_ip": "ip",
    "node_name": "node",
}


@dataclass(frozen=True)
class ShardRecord:
    index_name: str = ""
    shard_id: str = ""
    role: str = ""
    state: str = ""
    document_count: str = ""
    store_size: str = ""
    node_ip: str = ""
    node_name: str = ""

    @classmethod
    def from_json(cls, row):
        """
        Build a record from one decoded `_cat/shards` object.

        Missing keys and JSON nulls become empty strings (unassigned shards
        report no store/ip/node). Unknown keys are ignored. Values are kept as
        the strings the cluster returned; `shard` and `docs` are never coerced.

        Raises:
            TypeError: the row is not an object or a known key holds a non-string.
        """
        if not isinstance(row, dict):
            raise TypeError(f"expected a JSON object per shard, got {type(row).__name__}")

        values = {}
        for field_name, key in JSON_FIELDS.items():
            value = row.get(key)
            if value is None:
                value = ""
            elif not isinstance(value, str):
                raise TypeError(f"field '{key}' must be a string, got {type(value).__name__}")
            values[field_name] = value
        return cls(**values)

    def attributes(self) -> Dict[str, str]:
        """Gauge attributes for this shard, keyed the way the cluster names them."""
        return {
            "index": self.index_name,
            "shard": self.shard_id,
            "prirep": self.role,
            "state": self.state,
            "node": self.node_name,
            "ip": self.node_ip,
        }


class Measurement(NamedTuple):
    value: float
    attributes: Dict[str, str]
