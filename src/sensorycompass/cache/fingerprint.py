"""Deterministic fingerprints and cache keys for analysis inputs.

Structurally equal inputs must map to the same key no matter how a caller
built them, so everything goes through one canonical JSON form: object keys
sorted, arrays kept in order, sets sorted by their own canonical form.

Example:
    >>> create_key("emotion-patterns", {"timeframe": 30, "count": 4})
    'emotion-patterns:count:4:timeframe:30'
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel

from sensorycompass.errors import SerializationError


FINGERPRINT_LENGTH = 16


def _to_canonical(value: Any) -> Any:
    """``default`` hook for :func:`json.dumps` covering non-JSON types.

    Models and dataclasses are expanded one level at a time so the encoder's
    own circular-reference check still sees every container.
    """
    if isinstance(value, BaseModel):
        return {name: getattr(value, name) for name in type(value).model_fields}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=canonical_json)
    raise TypeError(f"Object of type {type(value).__name__} has no canonical form")


def canonical_json(value: Any) -> str:
    """Serialize ``value`` to its canonical JSON text.

    Raises:
        SerializationError: for circular references or unsupported objects.
    """
    try:
        return json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=_to_canonical,
        )
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(
            f"Cannot fingerprint {type(value).__name__}: {exc}",
        ) from exc


def fingerprint(data: Any) -> str:
    """Generate a deterministic 16-character hash of ``data``."""
    return hashlib.sha256(canonical_json(data).encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def create_key(prefix: str, params: Mapping[str, Any]) -> str:
    """Build a cache key from an operation prefix and named parameters.

    Parameters are ordered by name, so insertion order never changes the key.
    """
    parts = [f"{name}:{canonical_json(params[name])}" for name in sorted(params)]
    return ":".join([prefix, *parts])


__all__ = ["FINGERPRINT_LENGTH", "canonical_json", "create_key", "fingerprint"]
