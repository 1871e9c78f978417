from __future__ import annotations

from typing import Any

from fluentmap.Support.Map import Map


def collect(elements: Any = None) -> Map:
    """Create a map instance, maps are returned unchanged."""
    return Map.from_(elements)


def is_map(value: Any) -> bool:
    """Check if the value is a map."""
    return isinstance(value, Map)
