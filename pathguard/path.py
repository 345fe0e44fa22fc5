"""
Pathguard path algebra.

Paths address values inside a store tree as colon-delimited segments,
e.g. "config:database:host". Splitting and joining are pure and perform
no normalization: no trimming, no case folding, no collapsing of
repeated separators.
"""

from __future__ import annotations

from typing import Any, Optional

SEPARATOR = ":"


def split(path: str) -> list[str]:
    """Split a path into its ordered segments.

    ``split("")`` yields a single empty segment; callers that need a
    well-formed path should run :func:`validate` first.
    """
    return path.split(SEPARATOR)


def join(segments: list[str]) -> str:
    """Join ordered segments back into a path string."""
    return SEPARATOR.join(segments)


def head_and_rest(path: str) -> tuple[str, Optional[str]]:
    """Return the first segment and the remaining path.

    The remainder is None when the path has a single segment.
    """
    head, sep, rest = path.partition(SEPARATOR)
    return head, (rest if sep else None)


def validate(path: Any) -> Optional[str]:
    """Check that a path is usable for a store lookup.

    Args:
        path: The candidate path.

    Returns:
        None when the path is valid, otherwise a short description of
        what is wrong with it.
    """
    if path is None:
        return "Null path forbidden"
    if not isinstance(path, str):
        return f"Path must be a string, got {type(path).__name__}"
    if any(segment == "" for segment in split(path)):
        return f"Path contains an empty segment: {path!r}"
    return None
