"""
Canonical JSON

Run fingerprints are SHA-256 digests of a canonical JSON rendering:
sorted keys, no whitespace, numpy values reduced to plain Python first.
Two runs with bit-identical parameters and traces get the same digest.
"""

import hashlib
import json
from typing import Any

import numpy as np


def _normalize(obj: Any) -> Any:
    """Recursively replace numpy arrays/scalars and tuples with JSON-native values."""
    if isinstance(obj, dict):
        return {str(key): _normalize(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_normalize(value) for value in obj]
    if isinstance(obj, np.ndarray):
        return _normalize(obj.tolist())
    if isinstance(obj, np.generic):
        return obj.item()
    return obj


def canonical_dumps(obj: Any, indent: int = None) -> str:
    """
    Serialize to canonical JSON.

    Args:
        obj: Nested dicts/lists of plain or numpy values
        indent: Pretty-print indentation (None for the compact hashing form)

    Returns:
        JSON string with sorted keys
    """
    return json.dumps(
        _normalize(obj),
        sort_keys=True,
        separators=(',', ':') if indent is None else None,
        indent=indent,
        default=str,
    )


def canonical_hash(obj: Any) -> str:
    """Hex SHA-256 digest of the compact canonical JSON of obj."""
    return hashlib.sha256(canonical_dumps(obj).encode('utf-8')).hexdigest()
