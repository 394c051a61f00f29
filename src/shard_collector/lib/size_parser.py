"""
size_parser.py
- Converts the cluster's human-readable store sizes ("512kb", "3.2gb") into bytes.
- Only kb, mb and gb are understood; plain bytes and tb must be normalized
  upstream.
"""

import math

from shard_collector.core.constants import SIZE_UNITS
from shard_collector.core.errors import MalformedNumber, UnknownUnit


def parse_store_size(raw):
    """
    Return the byte count for a `_cat/shards` store size.

    Args:
        raw (str): Size as reported by the cluster. Surrounding whitespace is
            ignored; an empty string means the shard reports no store.

    Returns:
        float: value * 1024**n for kb/mb/gb, or 0.0 for an empty size.

    Raises:
        UnknownUnit: no kb/mb/gb suffix (carries the untrimmed input).
        MalformedNumber: the part before the suffix is not a float.
    """
    store = raw.strip()
    if store == "":
        return 0.0

    for suffix, multiplier in SIZE_UNITS:
        if store.endswith(suffix):
            number = store[: -len(suffix)]
            break
    else:
        raise UnknownUnit(raw)

    try:
        value = _parse_float(number)
    except ValueError:
        raise MalformedNumber(number) from None

    size_in_bytes = value * multiplier
    if math.isinf(size_in_bytes):
        raise MalformedNumber(number)
    return size_in_bytes


def _parse_float(text):
    # float() also takes "inf"/"nan" and surrounding whitespace; the cluster never sends those
    if text != text.strip() or "_" in text or not any(c.isdigit() for c in text):
        raise ValueError(text)
    value = float(text)
    if math.isinf(value):
        # overflowed float64
        raise ValueError(text)
    return value


def format_store_size(num_bytes, unit=None):
    """
    Render a byte count the way the cluster prints store sizes.

    Picks the largest of gb/mb/kb with a magnitude of at least 1 unless `unit`
    is given. Only used for display and round-trip checks.
    """
    multipliers = dict(SIZE_UNITS)
    if unit is None:
        unit = "kb"
        for suffix, multiplier in reversed(SIZE_UNITS):
            if abs(num_bytes) >= multiplier:
                unit = suffix
                break
    elif unit not in multipliers:
        raise UnknownUnit(unit)

    text = repr(num_bytes / multipliers[unit])
    if text.endswith(".0"):
        text = text[:-2]
    return f"{text}{unit}"
