"""
Pathguard JSON types and flattening.

Composite JSON values are never stored as-is: they are flattened into a
mapping from leaf path to primitive and replayed into a fresh store.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from . import path as path_module

JSONPrimitive = Union[str, int, float, bool, None]
JSONValue = Union[JSONPrimitive, list, dict]
JSONObject = dict[str, Any]
JSONArray = list

PRIMITIVE_TYPES = (str, int, float, bool, type(None))
COMPOSITE_TYPES = (dict, list, tuple)


def is_primitive(value: Any) -> bool:
    return isinstance(value, PRIMITIVE_TYPES)


def is_composite(value: Any) -> bool:
    return isinstance(value, COMPOSITE_TYPES)


def flatten(
    value: JSONValue,
    prefix: Optional[list[str]] = None,
) -> dict[str, JSONPrimitive]:
    """Map every leaf of a JSON value to its full colon-joined path.

    Object keys become path segments as-is. Array elements are addressed
    by their decimal index starting at 0. Key order of the input is kept.
    Empty objects and arrays contribute no leaves.

    Args:
        value: Any JSON value (dict, list/tuple, or primitive).
        prefix: Segments leading to ``value``; used by the recursion.

    Returns:
        An ordered dict of ``{path: primitive}``. A primitive at the top
        level maps to the empty path.

    Raises:
        TypeError: When a leaf is not a JSON primitive.
    """
    current = prefix or []
    result: dict[str, JSONPrimitive] = {}

    if isinstance(value, dict):
        for key, item in value.items():
            result.update(flatten(item, [*current, str(key)]))
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            result.update(flatten(item, [*current, str(index)]))
    elif is_primitive(value):
        result[path_module.join(current)] = value
    else:
        raise TypeError(
            f"flatten(): unsupported value of type {type(value).__name__} "
            f"at {path_module.join(current)!r}"
        )

    return result
