"""Canonical key for a cart line customization."""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

EMPTY_FINGERPRINT = "{}"


def _canonical_value(value: Any) -> Any:
    # 2.0 and 2 are the same number
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping):
        return {k: _canonical_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical_value(v) for v in value]
    return value


def normalize_customization(customization: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop unset options and order the rest by key code point."""
    if not customization:
        return {}
    return {
        key: _canonical_value(customization[key]) for key in sorted(customization) if customization[key]
    }


def customization_fingerprint(customization: Mapping[str, Any] | None) -> str:
    """Return a string that is equal for two customizations iff they are equivalent.

    Falsy values ("", None, False, 0) count as "not set" and are ignored, so
    ``{"color": "red", "note": ""}`` matches ``{"color": "red"}``. Values keep
    their type: ``0`` is dropped while ``"0"`` is kept.
    """
    if not customization:
        return EMPTY_FINGERPRINT
    return json.dumps(
        normalize_customization(customization),
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )
