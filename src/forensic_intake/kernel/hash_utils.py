"""Hash utilities with explicit canonicalization rules for stable hashing.

This module provides canonicalization and hashing functions that guarantee
stable, deterministic output across different Python versions and across
independent implementations of the same evidence format.

Key rules:
- Object keys sorted recursively (explicitly, never by insertion order)
- Arrays preserve order
- Floats BANNED (hard validation error)
- Strings normalized to NFC
- Non-JSON types forbidden
"""

import json
import hashlib
import unicodedata
from typing import Any, Mapping, Union


class CanonicalizationError(ValueError):
    """Raised when an object cannot be canonicalized."""
    pass


def _normalize_string(s: str) -> str:
    """Normalize string to NFC (Unicode Normalization Form Canonical Composition)."""
    return unicodedata.normalize('NFC', s)


def _validate_json_type(obj: Any, path: str = "") -> None:
    """Validate that object contains only JSON-compatible types.

    Raises CanonicalizationError if non-JSON types are found.

    Note: None vs missing keys - None is a valid JSON value and is kept;
    missing keys are simply absent. The two are never treated as equivalent.
    """
    if obj is None:
        return
    elif isinstance(obj, bool):
        return
    elif isinstance(obj, int):
        return
    elif isinstance(obj, float):
        # BAN FLOATS - float formatting is not stable across implementations
        raise CanonicalizationError(
            f"Floats are not allowed in canonical JSON (at {path or '<root>'}). "
            f"Use strings for decimals instead."
        )
    elif isinstance(obj, str):
        return
    elif isinstance(obj, Mapping):
        for key, value in obj.items():
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"Dictionary keys must be strings at {path or '<root>'}, got {type(key).__name__}"
                )
            _validate_json_type(value, f"{path}.{key}" if path else key)
    elif isinstance(obj, (list, tuple)):
        for i, item in enumerate(obj):
            _validate_json_type(item, f"{path}[{i}]" if path else f"[{i}]")
    else:
        raise CanonicalizationError(
            f"Non-JSON type at {path or '<root>'}: {type(obj).__name__}. "
            f"Only None, bool, int, str, dict, and list are allowed."
        )


def _canonicalize_value(obj: Any) -> Any:
    """Canonicalize a single (already validated) value."""
    if obj is None or isinstance(obj, (bool, int)):
        return obj
    elif isinstance(obj, str):
        return _normalize_string(obj)
    elif isinstance(obj, Mapping):
        # Sort keys recursively on their normalized form
        normalized = {_normalize_string(k): v for k, v in obj.items()}
        return {k: _canonicalize_value(normalized[k]) for k in sorted(normalized)}
    elif isinstance(obj, (list, tuple)):
        # Arrays preserve order
        return [_canonicalize_value(item) for item in obj]
    else:
        raise CanonicalizationError(f"Unsupported type: {type(obj).__name__}")


def canonicalize(obj: Any) -> Any:
    """Return a recursively key-sorted, NFC-normalized copy of ``obj``."""
    _validate_json_type(obj)
    return _canonicalize_value(obj)


def canonicalize_json(obj: Any) -> str:
    """Canonicalize a JSON-serializable object to a stable string representation.

    Rules:
    - Object keys sorted recursively (all nested objects)
    - Arrays preserve order
    - Numbers: int allowed, floats BANNED (hard error)
    - Strings: Unicode normalization (NFC), non-ASCII emitted as UTF-8
    - Compact separators (",", ":")

    Raises:
        CanonicalizationError: If object contains floats or non-JSON types
    """
    canonicalized = canonicalize(obj)
    return json.dumps(canonicalized, sort_keys=True, ensure_ascii=False, separators=(',', ':'))


def sha256_hex(content: Union[str, bytes]) -> str:
    """Compute the SHA-256 hex digest of text (UTF-8) or bytes."""
    if isinstance(content, str):
        content = content.encode('utf-8')
    return hashlib.sha256(content).hexdigest()


def hash_canonical(obj: Any) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``obj``."""
    return sha256_hex(canonicalize_json(obj))


def is_sha256_hex(value: Any) -> bool:
    """True for a 64-character lowercase hex string."""
    return (
        isinstance(value, str)
        and len(value) == 64
        and all(c in "0123456789abcdef" for c in value)
    )
