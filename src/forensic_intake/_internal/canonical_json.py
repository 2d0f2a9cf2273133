"""Centralized canonical JSON serialization for persisted artifacts.

Every JSON artifact written into an evidence directory goes through
``canonical_dumps`` so that a packet sealed on one platform re-verifies
byte-for-byte on another.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Canonical JSON serialization for byte-stable evidence.

    Rules:
    - UTF-8 encoding
    - Sorted keys
    - Stable separators (",", ":")
    - Deterministic list ordering (lists must already be ordered before calling)
    - No trailing whitespace

    Args:
        obj: Python object to serialize

    Returns:
        Canonical JSON string (UTF-8 encoded)
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False  # UTF-8 encoding
    )


def pretty_dumps(obj: Any) -> str:
    """Indented, key-sorted JSON for human-facing result records."""
    return json.dumps(obj, sort_keys=True, indent=2, ensure_ascii=False) + "\n"
