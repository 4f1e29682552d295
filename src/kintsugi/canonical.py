"""Deterministic structural normalization of JSON-compatible data."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from kintsugi.errors import ValidationError


def canonicalize(value: Any) -> Any:
    """Return a copy of *value* with every mapping's keys in lexicographic order.

    Sequences keep their element order. Tuples become lists. ``None`` is kept
    as an explicit null; keys that are absent stay absent.
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(
                "Non-finite numbers cannot be canonicalized.",
                context={"value": repr(value), "operation": "canonicalize"},
            )
        return value
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise ValidationError(
                    "Mapping keys must be strings.",
                    hint="Convert keys to strings before hashing.",
                    context={"key": repr(key), "operation": "canonicalize"},
                )
        return {key: canonicalize(value[key]) for key in sorted(value)}
    raise ValidationError(
        f"Unsupported value type: {type(value).__name__}",
        hint="Only null, booleans, numbers, strings, sequences and mappings are hashable.",
        context={"operation": "canonicalize"},
    )


def canonical_json(value: Any) -> str:
    return json.dumps(
        canonicalize(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
