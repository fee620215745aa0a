"""Deterministic serialization of short URL query parameters."""

import json
from typing import Any

QueryParams = dict[str, Any]


def serialize_query(query: QueryParams | None) -> str:
    """Serialize query parameters so equal inputs give identical strings.

    Keys are sorted at every level; list order is preserved because the
    order of repeated transformation parameters is significant.
    """
    return json.dumps(query or {}, sort_keys=True, separators=(",", ":"))


def deserialize_query(raw: str) -> QueryParams:
    """Inverse of :func:`serialize_query`.

    Raises:
        ValueError: If the stored value is not a JSON object
    """
    data = json.loads(raw)

    if not isinstance(data, dict):
        raise ValueError("Serialized query must decode to an object")

    return data
