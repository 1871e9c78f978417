"""Common type definitions for map keys, callbacks and exported data.

This module provides reusable type aliases so that the signatures of the
map operations stay readable.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Union

from typing_extensions import TypeAlias

# Normalized map key: integer keys and string keys never overlap
Key: TypeAlias = Union[int, str]

# Callback types
Comparator: TypeAlias = Callable[[Any, Any], int]
Predicate: TypeAlias = Callable[..., Any]

# Exported data
NativeMap: TypeAlias = Dict[Key, Any]
JsonValue = Union[
    str,
    int,
    float,
    bool,
    None,
    List['JsonValue'],
    Dict[str, 'JsonValue']
]
