"""Shared parsing helpers for the geocoding providers.

Provider payloads are loosely typed (coordinates arrive as strings, blank
strings stand in for missing fields); these helpers normalise them.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import ValidationError

from pycourier.models.geo import Coordinate


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def first_text(*values: Any) -> str | None:
    """Return the first value that is a non-blank string."""
    for value in values:
        text = safe_str(value) if isinstance(value, str) else None
        if text:
            return text
    return None


def coordinate_or_none(lat: Any, lng: Any) -> Coordinate | None:
    """Build a :class:`Coordinate` from loose values, ``None`` if unusable."""
    lat_f = safe_float(lat)
    lng_f = safe_float(lng)
    if lat_f is None or lng_f is None:
        return None
    try:
        return Coordinate(lat=lat_f, lng=lng_f)
    except ValidationError:
        return None


def documents_of(payload: Any) -> list[dict[str, Any]]:
    """``payload["documents"]`` filtered to dict rows."""
    if not isinstance(payload, dict):
        return []
    docs = payload.get("documents")
    if not isinstance(docs, list):
        return []
    return [doc for doc in docs if isinstance(doc, dict)]
