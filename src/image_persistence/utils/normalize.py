"""Conversion between store-native values and plain Python values.

boto3's DynamoDB resource returns every number as ``Decimal`` and string or
number sets as ``set``; it also refuses ``float`` on the way in. Repositories
run everything they return through :func:`to_plain` so callers only ever see
``dict``, ``list``, ``str``, ``int``, ``float``, ``bool``, ``bytes`` and
``None``, and run everything they write through :func:`to_store`.
"""

from collections.abc import Mapping, Set
from decimal import Decimal
from typing import Any


def _set_order(item: Any) -> tuple[int, Any]:
    if isinstance(item, (int, float)) and not isinstance(item, bool):
        return (0, item)
    if isinstance(item, str):
        return (1, item)
    return (2, repr(item))


def to_plain(value: Any) -> Any:
    """Recursively convert a store-native value into plain containers.

    Examples:
        to_plain(Decimal("3")) -> 3
        to_plain({"a": [Decimal("1.5")]}) -> {"a": [1.5]}
        to_plain({"b", "a"}) -> ["a", "b"]
        to_plain({Decimal("10"), Decimal("9")}) -> [9, 10]
    """
    if isinstance(value, (str, bytes, bytearray, bool)) or value is None:
        return value

    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)

    if isinstance(value, Mapping):
        return {key: to_plain(item) for key, item in value.items()}

    if isinstance(value, Set):
        return sorted((to_plain(item) for item in value), key=_set_order)

    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]

    return value


def to_store(value: Any) -> Any:
    """Recursively prepare a plain value for a DynamoDB write."""
    if isinstance(value, bool) or value is None:
        return value

    if isinstance(value, float):
        return Decimal(str(value))

    if isinstance(value, Mapping):
        return {key: to_store(item) for key, item in value.items()}

    if isinstance(value, (list, tuple)):
        return [to_store(item) for item in value]

    return value
