from __future__ import annotations

import copy as copy_module
import json
import pprint
import random
import re
import sys
from functools import cmp_to_key
from itertools import zip_longest
from typing import Any, Callable, ClassVar, Dict, ItemsView, Iterator, List, Optional, Tuple, Union

from fluentmap.Enums.SortFlag import SortFlag
from fluentmap.Exceptions import (
    BadMethodCallException,
    InvalidArgumentException,
    InvalidJsonException,
    InvalidPatternException,
)
from fluentmap.Support.Arr import Arr, MISSING
from fluentmap.Support.MethodRegistry import MethodRegistry, default_registry
from fluentmap.Support.Str import Str
from fluentmap.Types import Comparator, Key, NativeMap, Predicate
from fluentmap.Utils.Logger import get_logger
from fluentmap.config.map import get_map_settings

logger = get_logger(__name__)

UNLIMITED = 0x7fffffff


class _Storage:
    """Backing dict shared by map handles until one of them writes."""

    def __init__(self, items: Optional[Dict[Key, Any]] = None) -> None:
        self.items: Dict[Key, Any] = items if items is not None else {}
        self.refs = 1
        self.next_index: Optional[int] = None

    def share(self) -> '_Storage':
        """Register another handle on this storage."""
        self.refs += 1
        return self

    def clone(self) -> '_Storage':
        """Get a private copy of the storage."""
        storage = _Storage(dict(self.items))
        storage.next_index = self.next_index
        return storage


class Map:
    """Ordered map of int and str keys with a fluent, chainable API."""

    _default_registry: ClassVar[MethodRegistry] = default_registry

    def __init__(self, elements: Any = None, registry: Optional[MethodRegistry] = None) -> None:
        if isinstance(elements, Map):
            self._store = elements._store.share()
        else:
            self._store = _Storage(Arr.to_dict(elements))

        self._sep = get_map_settings().delimiter
        self._registry = registry if registry is not None else self._default_registry

    # Construction
    @classmethod
    def from_(cls, elements: Any = None) -> 'Map':
        """Create a new map unless the value already is one."""
        if isinstance(elements, Map):
            return elements
        return cls(elements)

    @classmethod
    def from_json(cls, text: str, max_depth: Optional[int] = None) -> 'Map':
        """Create a new map from a JSON string, objects keep their key order."""
        limit = max_depth if max_depth is not None else get_map_settings().json_max_depth

        try:
            result = json.loads(text)
        except (TypeError, ValueError) as e:
            logger.warning("Invalid JSON string", {'length': len(text) if isinstance(text, str) else None})
            raise InvalidJsonException(str(text), str(e)) from e
        except RecursionError as e:
            logger.warning("JSON string exceeds nesting limit", {'limit': limit})
            raise InvalidJsonException(str(text), 'maximum nesting depth exceeded') from e

        if result is None:
            raise InvalidJsonException(text, 'decodes to null')

        if Arr.depth(result, limit) > limit:
            logger.warning("JSON string exceeds nesting limit", {'limit': limit})
            raise InvalidJsonException(text, f'maximum depth of {limit} exceeded')

        return cls(result)

    @classmethod
    def times(cls, count: int, callback: Callable[[int], Any]) -> 'Map':
        """Create a new map by invoking the callback a given number of times."""
        return cls([callback(i) for i in range(count)])

    @classmethod
    def explode(cls, delimiter: str, subject: str, limit: int = sys.maxsize) -> 'Map':
        """Create a new map from the parts of a string, an empty delimiter splits into characters."""
        return cls(Str.split(delimiter, subject, limit))

    @classmethod
    def delimiter(cls, char: Optional[str] = None) -> str:
        """Set the path delimiter for new maps and return the previous one."""
        settings = get_map_settings()
        old = settings.delimiter

        if char:
            settings.delimiter = char
            logger.debug("Changed path delimiter", {'old': old, 'new': char})

        return old

    @classmethod
    def method(cls, name: str, function: Callable[..., Any]) -> None:
        """Register a custom method, called with the map as first argument."""
        cls._default_registry.register(name, function)

    # Internal storage handling
    @property
    def _items(self) -> Dict[Key, Any]:
        return self._store.items

    def _writable(self) -> Dict[Key, Any]:
        """Get the items for writing, separating shared storage first."""
        store = self._store
        if store.refs > 1:
            store.refs -= 1
            self._store = store.clone()
            logger.debug("Copy-on-write split", {'items': len(store.items)})
        return self._store.items

    def _replace(self, items: Dict[Key, Any]) -> None:
        """Replace all items at once."""
        store = self._store
        if store.refs > 1:
            store.refs -= 1
            self._store = _Storage(items)
        else:
            store.items = items
            store.next_index = None

    def _assign(self, key: Key, value: Any) -> None:
        items = self._writable()
        items[key] = value

        store = self._store
        if isinstance(key, int) and store.next_index is not None and key >= store.next_index:
            store.next_index = key + 1

    def _append(self, value: Any) -> Key:
        items = self._writable()
        store = self._store

        if store.next_index is None:
            store.next_index = Arr.next_index(items)

        key = store.next_index
        items[key] = value
        store.next_index = key + 1
        return key

    def _delete(self, key: Key) -> None:
        if key not in self._items:
            return

        items = self._writable()
        del items[key]

        store = self._store
        if isinstance(key, int) and store.next_index is not None and key == store.next_index - 1:
            store.next_index = None

    def _new(self, items: Optional[Dict[Key, Any]] = None) -> 'Map':
        """Create a map of the same class and registry from normalized items."""
        result = self.__class__(registry=self._registry)
        if items:
            result._store = _Storage(items)
        return result

    def _splice(self, start: int, stop: int, values: List[Any]) -> List[Any]:
        """Replace the positions start to stop by values and renumber the integer keys."""
        pairs = list(self._items.items())
        removed = [value for _, value in pairs[start:stop]]
        merged: List[Tuple[Optional[Key], Any]] = pairs[:start] + [(None, value) for value in values] + pairs[stop:]

        result: Dict[Key, Any] = {}
        index = 0

        for key, value in merged:
            if key is None or isinstance(key, int):
                result[index] = value
                index += 1
            else:
                result[key] = value

        self._replace(result)
        return removed

    # Core methods
    def all(self) -> NativeMap:
        """Get all items as a dict."""
        return dict(self._items)

    def items(self) -> ItemsView[Key, Any]:
        """Get the key/value pairs."""
        return self._items.items()

    def keys(self) -> 'Map':
        """Get the keys as new map."""
        return self._new(dict(enumerate(self._items.keys())))

    def values(self) -> 'Map':
        """Get the values with new consecutive integer keys."""
        return self._new(dict(enumerate(self._items.values())))

    def count(self) -> int:
        """Get the number of items."""
        return len(self._items)

    def is_empty(self) -> bool:
        """Check if the map is empty."""
        return len(self._items) == 0

    def empty(self) -> bool:
        """Check if the map is empty."""
        return self.is_empty()

    def copy(self) -> 'Map':
        """Get a copy sharing the storage until one of both maps is changed."""
        result = self._new()
        result._store = self._store.share()
        result._sep = self._sep
        return result

    def clear(self) -> 'Map':
        """Remove all items."""
        self._replace({})
        return self

    def sep(self, char: str) -> 'Map':
        """Set the path delimiter of this map."""
        if not char:
            raise InvalidArgumentException('Path delimiter must not be empty', 'char', char)
        self._sep = char
        return self

    # Accessors
    def get(self, key: Any, default: Any = None) -> Any:
        """Get the value for a key or a path like 'a/b/c'.

        Existing keys win over paths and a stored None is returned as is. If
        nothing is found, the default is returned, called when it's callable
        or raised when it's an exception.
        """
        if key is not None:
            normalized = Arr.normalize_key(key)
            if normalized in self._items:
                return self._items[normalized]

            if isinstance(key, str):
                value = Arr.get_value(self._items, key.split(self._sep))
                if value is not MISSING:
                    return value

        return Arr.fallback(default)

    def set(self, key: Any, value: Any) -> 'Map':
        """Overwrite or add an item, existing keys keep their position."""
        self._assign(Arr.normalize_key(key), value)
        return self

    def has(self, key: Any) -> bool:
        """Check if a key or path exists, for several keys all of them must exist."""
        for entry in Arr.wrap_keys(key):
            if entry is None:
                return False
            if Arr.normalize_key(entry) in self._items:
                continue
            if isinstance(entry, str) and Arr.get_value(self._items, entry.split(self._sep)) is not MISSING:
                continue
            return False
        return True

    def has_key(self, key: Any) -> bool:
        """Check if the exact key exists."""
        return Arr.normalize_key(key) in self._items

    def remove(self, keys: Any) -> 'Map':
        """Remove one or more keys, missing keys are ignored."""
        for key in Arr.wrap_keys(keys):
            self._delete(Arr.normalize_key(key))
        return self

    def pull(self, key: Any, default: Any = None) -> Any:
        """Get the value for a key and remove it."""
        value = self.get(key, default)
        self._delete(Arr.normalize_key(key))
        return value

    def first(self, default: Any = None) -> Any:
        """Get the first value."""
        for value in self._items.values():
            return value
        return Arr.fallback(default)

    def last(self, default: Any = None) -> Any:
        """Get the last value."""
        for value in reversed(self._items.values()):
            return value
        return Arr.fallback(default)

    def first_key(self) -> Optional[Key]:
        """Get the first key."""
        return next(iter(self._items), None)

    def last_key(self) -> Optional[Key]:
        """Get the last key."""
        return next(reversed(self._items), None)

    def find(self, callback: Predicate, default: Any = None, reverse: bool = False) -> Any:
        """Get the first value the callback returns true for."""
        call = Arr.bind(callback, 2)
        pairs = list(self._items.items())

        for key, value in (reversed(pairs) if reverse else pairs):
            if call(value, key):
                return value

        return Arr.fallback(default)

    def search(self, value: Any, strict: bool = True) -> Optional[Key]:
        """Get the key of the first matching value."""
        for key, item in self._items.items():
            if self._matches(item, value, strict):
                return key
        return None

    def pos(self, value: Any) -> Optional[int]:
        """Get the position of the first identical value or the first value the callback accepts."""
        if callable(value):
            call = Arr.bind(value, 2)
            for position, (key, item) in enumerate(list(self._items.items())):
                if call(item, key):
                    return position
            return None

        for position, item in enumerate(self._items.values()):
            if self._matches(item, value, True):
                return position
        return None

    def index(self, value: Any) -> Optional[int]:
        """Get the position of a key or of the first key the callback accepts."""
        if callable(value):
            for position, key in enumerate(list(self._items)):
                if value(key):
                    return position
            return None

        key = Arr.normalize_key(value)
        for position, item in enumerate(self._items):
            if item == key:
                return position
        return None

    def in_(self, element: Any, strict: bool = False) -> bool:
        """Check if a value, or all values of a list, exist."""
        if isinstance(element, list):
            return all(self.in_(entry, strict) for entry in element)
        return any(self._matches(item, element, strict) for item in self._items.values())

    def includes(self, element: Any, strict: bool = False) -> bool:
        """Check if a value, or all values of a list, exist."""
        return self.in_(element, strict)

    def some(self, values: Any, strict: bool = False) -> bool:
        """Check if at least one of the values exists or the callback returns true once."""
        if isinstance(values, (list, tuple, set, frozenset, Map)):
            entries = list(values)
            return any(self._matches(item, entry, strict) for entry in entries for item in self._items.values())

        if callable(values):
            call = Arr.bind(values, 2)
            return any(call(item, key) for key, item in list(self._items.items()))

        return any(self._matches(item, values, strict) for item in self._items.values())

    def every(self, callback: Predicate) -> bool:
        """Check if the callback returns true for all items."""
        call = Arr.bind(callback, 2)
        return all(call(value, key) for key, value in list(self._items.items()))

    def equals(self, elements: Any, with_keys: bool = False) -> bool:
        """Check if both contain the same values, as strings and regardless of order."""
        other = self.__class__(elements, registry=self._registry)

        if with_keys:
            return self.diff_assoc(other).is_empty() and other.diff_assoc(self).is_empty()

        return self.diff(other).is_empty() and other.diff(self).is_empty()

    def is_(self, elements: Any, strict: bool = False) -> bool:
        """Check if both contain the same key/value pairs, strict also compares order and types."""
        other = Arr.to_dict(elements)

        if strict:
            return list(self._items.keys()) == list(other.keys()) and all(
                self._matches(value, other[key], True) for key, value in self._items.items()
            )

        if len(other) != len(self._items):
            return False

        return all(
            key in other and Str.loose_compare(value, other[key]) == 0
            for key, value in self._items.items()
        )

    @staticmethod
    def _matches(item: Any, value: Any, strict: bool) -> bool:
        """Compare two values, strict requires the same type."""
        if strict:
            return type(item) is type(value) and item == value
        return Str.loose_compare(item, value) == 0

    # Adding/Removing items
    def push(self, value: Any) -> 'Map':
        """Add a value to the end using the next integer key."""
        self._append(value)
        return self

    def pop(self) -> Any:
        """Remove and return the last value."""
        if not self._items:
            return None

        items = self._writable()
        key = next(reversed(items))
        value = items.pop(key)
        self._store.next_index = None
        return value

    def shift(self) -> Any:
        """Remove and return the first value, integer keys are renumbered."""
        if not self._items:
            return None

        value = self.first()
        self._splice(0, 1, [])
        return value

    def unshift(self, value: Any, key: Any = None) -> 'Map':
        """Add a value to the beginning, integer keys are renumbered without a key."""
        if key is None:
            self._splice(0, 0, [value])
            return self

        normalized = Arr.normalize_key(key)
        result = {normalized: value}
        result.update((k, v) for k, v in self._items.items() if k != normalized)
        self._replace(result)
        return self

    def prepend(self, value: Any, key: Any = None) -> 'Map':
        """Add a value to the beginning."""
        return self.unshift(value, key)

    def concat(self, elements: Any) -> 'Map':
        """Append all values of the elements, their keys are dropped."""
        for value in list(Arr.to_dict(elements).values()):
            self._append(value)
        return self

    def merge(self, elements: Any, recursive: bool = False) -> 'Map':
        """Merge the elements, existing keys are overwritten in place.

        With recursive, nested containers are merged as well and colliding
        string keys with plain values collect both values in a list.
        """
        other = Arr.to_dict(elements)

        if recursive:
            self._replace(Arr.merge_recursive(self._items, other))
        else:
            for key, value in other.items():
                self._assign(key, value)

        return self

    def union(self, elements: Any) -> 'Map':
        """Add the elements whose keys don't exist yet."""
        for key, value in Arr.to_dict(elements).items():
            if key not in self._items:
                self._assign(key, value)
        return self

    def replace(self, elements: Any, recursive: bool = True) -> 'Map':
        """Replace values by the ones with the same key from the elements."""
        other = Arr.to_dict(elements)

        if recursive:
            self._replace(Arr.replace_recursive(self._items, other))
        else:
            for key, value in other.items():
                self._assign(key, value)

        return self

    def insert_after(self, element: Any, value: Any) -> 'Map':
        """Insert the value(s) after the given element, or at the end."""
        position = self.pos(element) if element is not None else None
        start = position + 1 if position is not None else len(self._items)
        self._splice(start, start, list(Arr.to_dict(value).values()))
        return self

    def insert_before(self, element: Any, value: Any) -> 'Map':
        """Insert the value(s) before the given element, or at the end."""
        position = self.pos(element) if element is not None else None
        start = position if position is not None else len(self._items)
        self._splice(start, start, list(Arr.to_dict(value).values()))
        return self

    def prefix(self, prefix: Union[str, Callable[..., Any]], depth: Optional[int] = None) -> 'Map':
        """Add a prefix to each value, nested up to depth levels."""
        self._replace(self._affix(prefix, depth, True))
        return self

    def suffix(self, suffix: Union[str, Callable[..., Any]], depth: Optional[int] = None) -> 'Map':
        """Add a suffix to each value, nested up to depth levels."""
        self._replace(self._affix(suffix, depth, False))
        return self

    def _affix(self, affix: Union[str, Callable[..., Any]], depth: Optional[int], before: bool) -> Dict[Key, Any]:
        call = Arr.bind(affix, 2) if callable(affix) else None

        def apply(items: Dict[Any, Any], level: int) -> Dict[Any, Any]:
            result: Dict[Any, Any] = {}
            for key, item in items.items():
                if Arr.is_iterable(item):
                    result[key] = Arr.rebuild(item, apply(dict(Arr.pairs(item)), level - 1)) if level > 1 else item
                    continue

                text = Str.to_string(call(item, key) if call else affix, 'prefix')
                value = Str.to_string(item, 'prefix')
                result[key] = text + value if before else value + text
            return result

        return apply(dict(self._items), depth if depth is not None else UNLIMITED)

    # Transforming
    def map(self, callback: Callable[..., Any]) -> 'Map':
        """Create a new map with the same keys and the values returned by the callback."""
        call = Arr.bind(callback, 2)
        return self._new({key: call(value, key) for key, value in list(self._items.items())})

    def filter(self, callback: Optional[Predicate] = None) -> 'Map':
        """Keep the items the callback returns true for, or the truthy values without callback."""
        if callback is None:
            return self._new({key: value for key, value in self._items.items() if Str.is_truthy(value)})

        call = Arr.bind(callback, 2)
        return self._new({key: value for key, value in list(self._items.items()) if call(value, key)})

    def reject(self, callback: Any = True) -> 'Map':
        """Remove the items the callback returns true for, or the ones equal to the given value."""
        if callable(callback):
            call = Arr.bind(callback, 2)
            return self._new({key: value for key, value in list(self._items.items()) if not call(value, key)})

        return self._new({
            key: value for key, value in self._items.items() if Str.loose_compare(value, callback) != 0
        })

    def walk(self, callback: Callable[..., Any], data: Any = None, recursive: bool = True) -> 'Map':
        """Rewrite the values in place by the callback receiving (value, key, data).

        The returned value replaces the old one, None leaves it unchanged.
        Nested containers are descended into if recursive, the callback is
        not called for the containers themselves and keys are never changed.
        """
        call = Arr.bind(callback, 3)

        def visit(items: Dict[Any, Any]) -> Dict[Any, Any]:
            result: Dict[Any, Any] = {}
            for key, value in items.items():
                if recursive and Arr.is_iterable(value) and not isinstance(value, (set, frozenset)):
                    result[key] = Arr.rebuild(value, visit(dict(Arr.pairs(value))))
                else:
                    rewritten = call(value, key, data)
                    result[key] = value if rewritten is None else rewritten
            return result

        self._replace(visit(dict(self._items)))
        return self

    def reduce(self, callback: Callable[..., Any], initial: Any = None, drain: Optional[bool] = None) -> Any:
        """Fold the values from left to right by the callback receiving (carry, value, key).

        The map is left unchanged unless drain is true (or the reduce_drains
        setting is enabled), in which case it is emptied afterwards.
        """
        call = Arr.bind(callback, 3)
        result = initial

        for key, value in list(self._items.items()):
            result = call(result, value, key)

        if drain if drain is not None else get_map_settings().reduce_drains:
            self.clear()

        return result

    def each(self, callback: Callable[..., Any]) -> 'Map':
        """Execute the callback for each item until it returns False."""
        call = Arr.bind(callback, 2)
        for key, value in list(self._items.items()):
            if call(value, key) is False:
                break
        return self

    def collapse(self, depth: Optional[int] = None) -> 'Map':
        """Merge nested containers into one level, later keys overwrite earlier ones."""
        if depth is not None and depth < 0:
            raise InvalidArgumentException('Depth must be greater or equal than 0 or None', 'depth', depth)

        result: Dict[Key, Any] = {}
        Arr.kflatten(self._items, result, depth if depth is not None else UNLIMITED)
        return self._new(result)

    def flat(self, depth: Optional[int] = None) -> 'Map':
        """Concatenate the values of nested containers with new consecutive keys."""
        if depth is not None and depth < 0:
            raise InvalidArgumentException('Depth must be greater or equal than 0 or None', 'depth', depth)

        result: List[Any] = []
        Arr.flatten(self._items, result, depth if depth is not None else UNLIMITED)
        return self._new(dict(enumerate(result)))

    def col(self, value_col: Optional[str] = None, index_col: Optional[str] = None) -> 'Map':
        """Get the values of one column (or whole items), optionally keyed by another column."""
        value_parts = value_col.split(self._sep) if value_col is not None else None
        index_parts = index_col.split(self._sep) if index_col is not None else None
        result = self._new()

        for item in list(self._items.values()):
            value = item if value_parts is None else Arr.get_value(item, value_parts)
            if value is MISSING:
                continue

            index = Arr.get_value(item, index_parts) if index_parts is not None else MISSING

            if index is MISSING or index is None or Str.is_container(index):
                result._append(value)
            elif isinstance(index, (int, str)) and not isinstance(index, bool):
                result._assign(Arr.normalize_key(index), value)
            else:
                result._assign(Arr.normalize_key(Str.to_string(index, 'col')), value)

        return result

    def call(self, name: str, *args: Any, **kwargs: Any) -> 'Map':
        """Call a method (or read an attribute) of all items supporting it, keys are kept."""
        result: Dict[Key, Any] = {}

        if name.startswith('_'):
            return self._new(result)

        for key, item in list(self._items.items()):
            attribute = getattr(item, name, MISSING)
            if attribute is MISSING:
                continue
            result[key] = attribute(*args, **kwargs) if callable(attribute) else attribute

        return self._new(result)

    def chunk(self, size: int, preserve: bool = False) -> 'Map':
        """Split into chunks of the given size, as lists or as dicts with the original keys."""
        if size < 1:
            raise InvalidArgumentException('Chunk size must be greater or equal than 1', 'size', size)

        pairs = list(self._items.items())
        chunks: List[Any] = []

        for start in range(0, len(pairs), size):
            part = pairs[start:start + size]
            chunks.append(dict(part) if preserve else [value for _, value in part])

        return self._new(dict(enumerate(chunks)))

    def combine(self, values: Any) -> 'Map':
        """Use the values as keys for the given values."""
        other = list(Arr.to_dict(values).values())

        if len(other) != len(self._items):
            raise InvalidArgumentException(
                'Both maps must have the same number of elements', 'values', len(other)
            )

        return self._new({Arr.normalize_key(key): value for key, value in zip(self._items.values(), other)})

    def count_by(self, callback: Optional[Callable[..., Any]] = None) -> 'Map':
        """Count how often the values (or the callback results) occur."""
        call = Arr.bind(callback, 2) if callback is not None else None
        result = self._new()

        for key, value in list(self._items.items()):
            counted = call(value, key) if call else Str.to_string(value, 'count_by')
            if not isinstance(counted, (int, str)) or isinstance(counted, bool):
                continue
            counted = Arr.normalize_key(counted)
            result._assign(counted, result._items.get(counted, 0) + 1)

        return result

    def duplicates(self, key: Optional[str] = None) -> 'Map':
        """Get the items whose value (or column value) occurred before."""
        parts = key.split(self._sep) if key is not None else None
        seen = set()
        result: Dict[Key, Any] = {}

        for index, item in self._items.items():
            value = item if parts is None else Arr.get_value(item, parts)
            identity = Str.to_key(None if value is MISSING else value)
            if identity in seen:
                result[index] = item
            seen.add(identity)

        return self._new(result)

    def except_(self, keys: Any) -> 'Map':
        """Get a copy without the given keys."""
        return self.copy().remove(keys)

    def only(self, keys: Any) -> 'Map':
        """Get only the given keys."""
        wanted = {Arr.normalize_key(key) for key in Arr.wrap_keys(keys)}
        return self._new({key: value for key, value in self._items.items() if key in wanted})

    def flip(self) -> 'Map':
        """Swap keys and values, only int and str values can become keys."""
        result: Dict[Key, Any] = {}
        for key, value in self._items.items():
            if isinstance(value, (int, str)) and not isinstance(value, bool):
                result[Arr.normalize_key(value)] = key
        return self._new(result)

    def grep(self, pattern: str, invert: bool = False) -> 'Map':
        """Get the items whose string value matches the regular expression."""
        try:
            compiled = Str.pattern(pattern)
        except re.error as e:
            logger.warning("Invalid regular expression", {'pattern': pattern})
            raise InvalidPatternException(pattern, str(e)) from e

        result: Dict[Key, Any] = {}
        for key, value in self._items.items():
            if Str.is_container(value):
                continue
            if (compiled.search(Str.to_string(value, 'grep')) is not None) != invert:
                result[key] = value

        return self._new(result)

    def group_by(self, key: Union[str, Callable[..., Any]]) -> 'Map':
        """Group the items by a column value or the callback result, keys are kept."""
        call = Arr.bind(key, 2) if callable(key) else None
        parts = key.split(self._sep) if isinstance(key, str) else None
        groups: Dict[Key, Dict[Key, Any]] = {}

        for index, item in list(self._items.items()):
            if call:
                value = call(item, index)
            else:
                value = Arr.get_value(item, parts or [])
                if value is MISSING or value is None:
                    value = ''

            if isinstance(value, (int, str)) and not isinstance(value, bool):
                group = Arr.normalize_key(value)
            else:
                group = Arr.normalize_key(Str.to_string(value, 'group_by'))

            groups.setdefault(group, {})[index] = item

        return self._new(dict(groups))

    def if_(
        self,
        condition: Any,
        then: Optional[Callable[['Map'], Any]] = None,
        else_: Optional[Callable[['Map'], Any]] = None
    ) -> 'Map':
        """Execute a callback depending on the condition and wrap its result in a new map."""
        if callable(condition):
            condition = condition(self)

        if condition:
            result = then(self) if then else self
        elif else_:
            result = else_(self)
        else:
            result = None

        return self.__class__(result, registry=self._registry)

    def nth(self, step: int, offset: int = 0) -> 'Map':
        """Get every nth item starting at the offset."""
        if step < 1:
            raise InvalidArgumentException('Step must be greater or equal than 1', 'step', step)

        return self._new({
            key: value for position, (key, value) in enumerate(self._items.items())
            if position % step == offset
        })

    def pad(self, size: int, value: Any = None) -> 'Map':
        """Fill up to the absolute size with the value, at the start for a negative size."""
        missing = abs(size) - len(self._items)
        result = self.copy()

        if missing <= 0:
            return result

        if size > 0:
            result._splice(len(self._items), len(self._items), [value] * missing)
        else:
            result._splice(0, 0, [value] * missing)

        return result

    def partition(self, number: Union[int, Callable[..., Any]]) -> 'Map':
        """Split into a number of groups of similar size or by the callback result."""
        if not self._items:
            return self._new()

        if callable(number):
            call = Arr.bind(number, 2)
            groups: Dict[Key, Dict[Key, Any]] = {}
            for key, value in list(self._items.items()):
                group = call(value, key)
                groups.setdefault(Arr.normalize_key(group), {})[key] = value
            return self._new(dict(groups))

        if isinstance(number, int) and not isinstance(number, bool):
            if number < 1:
                raise InvalidArgumentException('Number of groups must be greater or equal than 1', 'number', number)

            pairs = list(self._items.items())
            size = -(-len(pairs) // number)
            return self._new({
                i: dict(pairs[i * size:(i + 1) * size]) for i in range(number)
            })

        raise InvalidArgumentException('Parameter is no callable or integer', 'number', number)

    def skip(self, offset: Union[int, Callable[..., Any]]) -> 'Map':
        """Skip a number of items or the items as long as the callback returns true."""
        return self.slice(self._offset(offset, 'skip'))

    def take(self, size: int, offset: Union[int, Callable[..., Any]] = 0) -> 'Map':
        """Take a number of items starting at the offset or after the callback returns false."""
        return self.slice(self._offset(offset, 'take'), size)

    def _offset(self, offset: Union[int, Callable[..., Any]], operation: str) -> int:
        if isinstance(offset, bool):
            raise InvalidArgumentException(
                f'Only an integer or a callable is allowed as offset for {operation}()', 'offset', offset
            )

        if isinstance(offset, (int, float)) or Str.is_numeric(offset):
            return int(Str.to_number(offset))

        if callable(offset):
            call = Arr.bind(offset, 2)
            position = 0
            for key, value in list(self._items.items()):
                if not call(value, key):
                    break
                position += 1
            return position

        raise InvalidArgumentException(
            f'Only an integer or a callable is allowed as offset for {operation}()', 'offset', offset
        )

    def transpose(self) -> 'Map':
        """Exchange rows and columns of a two dimensional map."""
        result: Dict[Key, Any] = {}
        first = self.first({})

        for key, _ in Arr.pairs(first) if Arr.is_iterable(first) else []:
            column = []
            for row in self._items.values():
                value = Arr.get_value(row, [str(key)])
                if value is not MISSING:
                    column.append(value)
            result[Arr.normalize_key(key)] = column

        return self._new(result)

    def traverse(self, callback: Optional[Callable[..., Any]] = None, nest_key: str = 'children') -> 'Map':
        """Flatten a tree of nested items, the callback receives (entry, key, level)."""
        call = Arr.bind(callback, 3) if callback is not None else None
        result: List[Any] = []

        def visit(entries: Any, level: int) -> None:
            for key, entry in Arr.pairs(entries):
                result.append(call(entry, key, level) if call else entry)
                children = Arr.get_value(entry, [nest_key])
                if children is not MISSING and Arr.is_iterable(children):
                    visit(children, level + 1)

        visit(self._items, 0)
        return self._new(dict(enumerate(result)))

    def tree(self, id_key: str, parent_key: str, nest_key: str = 'children') -> 'Map':
        """Build trees from a list of nodes referencing their parents.

        Parents must come before their children, nodes with an unknown parent
        are dropped. The nodes are copied into dicts.
        """
        trees: Dict[Key, Any] = {}
        refs: Dict[Key, Dict[Any, Any]] = {}

        for item in self._items.values():
            node = dict(Arr.pairs(item))
            node[nest_key] = {}
            node_id = Arr.normalize_key(node[id_key])
            refs[node_id] = node

            parent = node.get(parent_key)
            if parent:
                parent_node = refs.get(Arr.normalize_key(parent))
                if parent_node is not None:
                    parent_node[nest_key][node_id] = node
            else:
                trees[node_id] = node

        return self._new(trees)

    def unique(self, key: Optional[str] = None) -> 'Map':
        """Remove duplicate values (or items with duplicate column values), keys are kept."""
        if key is not None:
            return self.col(None, key).values()

        seen = set()
        result: Dict[Key, Any] = {}

        for index, value in self._items.items():
            identity = Str.to_key(value)
            if identity not in seen:
                seen.add(identity)
                result[index] = value

        return self._new(result)

    def where(self, key: str, op: str, value: Any) -> 'Map':
        """Filter the items by comparing a column (or path) with the value."""
        parts = key.split(self._sep)

        def check(item: Any) -> bool:
            current = Arr.get_value(item, parts)
            if current is MISSING or current is None:
                return False

            if op == '-':
                bounds = list(Arr.to_dict(value).values())
                return Str.loose_compare(current, bounds[0]) >= 0 and Str.loose_compare(current, bounds[-1]) <= 0
            if op == 'in':
                return any(Str.loose_compare(current, entry) == 0 for entry in Arr.to_dict(value).values())
            if op == '<':
                return Str.loose_compare(current, value) < 0
            if op == '>':
                return Str.loose_compare(current, value) > 0
            if op == '<=':
                return Str.loose_compare(current, value) <= 0
            if op == '>=':
                return Str.loose_compare(current, value) >= 0
            if op == '===':
                return self._matches(current, value, True)
            if op == '!==':
                return not self._matches(current, value, True)
            if op in ('!=', '<>'):
                return Str.loose_compare(current, value) != 0
            return Str.loose_compare(current, value) == 0

        return self.filter(check)

    def zip(self, *arrays: Any) -> 'Map':
        """Combine the values of all maps by position, shorter ones are padded with None."""
        others = [list(Arr.to_dict(array).values()) for array in arrays]
        rows = [list(row) for row in zip_longest(self._items.values(), *others)]
        return self._new(dict(enumerate(rows)))

    # Set operations
    def diff(self, elements: Any, callback: Optional[Comparator] = None) -> 'Map':
        """Get the items whose values are not in the elements."""
        other = list(Arr.to_dict(elements).values())

        if callback is not None:
            return self._new({
                key: value for key, value in self._items.items()
                if not any(callback(value, entry) == 0 for entry in other)
            })

        identities = {Str.to_key(entry) for entry in other}
        return self._new({
            key: value for key, value in self._items.items() if Str.to_key(value) not in identities
        })

    def diff_assoc(self, elements: Any, callback: Optional[Comparator] = None) -> 'Map':
        """Get the items whose key/value pairs are not in the elements."""
        other = Arr.to_dict(elements)
        return self._new({
            key: value for key, value in self._items.items()
            if not (key in other and self._same_value(value, other[key], callback))
        })

    def diff_keys(self, elements: Any, callback: Optional[Comparator] = None) -> 'Map':
        """Get the items whose keys are not in the elements."""
        other = Arr.to_dict(elements)
        return self._new({
            key: value for key, value in self._items.items() if not self._has_key(other, key, callback)
        })

    def intersect(self, elements: Any, callback: Optional[Comparator] = None) -> 'Map':
        """Get the items whose values are also in the elements."""
        other = list(Arr.to_dict(elements).values())

        if callback is not None:
            return self._new({
                key: value for key, value in self._items.items()
                if any(callback(value, entry) == 0 for entry in other)
            })

        identities = {Str.to_key(entry) for entry in other}
        return self._new({
            key: value for key, value in self._items.items() if Str.to_key(value) in identities
        })

    def intersect_assoc(self, elements: Any, callback: Optional[Comparator] = None) -> 'Map':
        """Get the items whose key/value pairs are also in the elements."""
        other = Arr.to_dict(elements)
        return self._new({
            key: value for key, value in self._items.items()
            if key in other and self._same_value(value, other[key], callback)
        })

    def intersect_keys(self, elements: Any, callback: Optional[Comparator] = None) -> 'Map':
        """Get the items whose keys are also in the elements."""
        other = Arr.to_dict(elements)
        return self._new({
            key: value for key, value in self._items.items() if self._has_key(other, key, callback)
        })

    @staticmethod
    def _same_value(left: Any, right: Any, callback: Optional[Comparator]) -> bool:
        if callback is not None:
            return callback(left, right) == 0
        return Str.to_key(left) == Str.to_key(right)

    @staticmethod
    def _has_key(items: Dict[Key, Any], key: Key, callback: Optional[Comparator]) -> bool:
        if callback is not None:
            return any(callback(key, other) == 0 for other in items)
        return key in items

    # Sorting
    def sort(self, flags: Union[SortFlag, int] = SortFlag.REGULAR) -> 'Map':
        """Sort the values in place, keys are renumbered."""
        compare = cmp_to_key(Str.comparator(flags))
        self._replace(dict(enumerate(sorted(self._items.values(), key=compare))))
        return self

    def rsort(self, flags: Union[SortFlag, int] = SortFlag.REGULAR) -> 'Map':
        """Sort the values in reverse order, keys are renumbered."""
        compare = cmp_to_key(Str.comparator(flags))
        self._replace(dict(enumerate(sorted(self._items.values(), key=compare, reverse=True))))
        return self

    def asort(self, flags: Union[SortFlag, int] = SortFlag.REGULAR) -> 'Map':
        """Sort by value in place, keys are kept."""
        compare = cmp_to_key(Str.comparator(flags))
        self._replace(dict(sorted(self._items.items(), key=lambda pair: compare(pair[1]))))
        return self

    def arsort(self, flags: Union[SortFlag, int] = SortFlag.REGULAR) -> 'Map':
        """Sort by value in reverse order, keys are kept."""
        compare = cmp_to_key(Str.comparator(flags))
        self._replace(dict(sorted(self._items.items(), key=lambda pair: compare(pair[1]), reverse=True)))
        return self

    def ksort(self, flags: Union[SortFlag, int] = SortFlag.REGULAR) -> 'Map':
        """Sort by key in place."""
        compare = cmp_to_key(Str.comparator(flags))
        self._replace(dict(sorted(self._items.items(), key=lambda pair: compare(pair[0]))))
        return self

    def krsort(self, flags: Union[SortFlag, int] = SortFlag.REGULAR) -> 'Map':
        """Sort by key in reverse order."""
        compare = cmp_to_key(Str.comparator(flags))
        self._replace(dict(sorted(self._items.items(), key=lambda pair: compare(pair[0]), reverse=True)))
        return self

    def usort(self, callback: Comparator) -> 'Map':
        """Sort the values by the comparator, keys are renumbered."""
        compare = cmp_to_key(callback)
        self._replace(dict(enumerate(sorted(self._items.values(), key=compare))))
        return self

    def uasort(self, callback: Comparator) -> 'Map':
        """Sort by value using the comparator, keys are kept."""
        compare = cmp_to_key(callback)
        self._replace(dict(sorted(self._items.items(), key=lambda pair: compare(pair[1]))))
        return self

    def uksort(self, callback: Comparator) -> 'Map':
        """Sort by key using the comparator."""
        compare = cmp_to_key(callback)
        self._replace(dict(sorted(self._items.items(), key=lambda pair: compare(pair[0]))))
        return self

    def reverse(self) -> 'Map':
        """Reverse the order in place, keys are kept."""
        self._replace(dict(reversed(list(self._items.items()))))
        return self

    def shuffle(self, assoc: bool = False) -> 'Map':
        """Shuffle the items in place, keys are renumbered unless assoc is true."""
        pairs = list(self._items.items())
        random.shuffle(pairs)

        if assoc:
            self._replace(dict(pairs))
        else:
            self._replace(dict(enumerate(value for _, value in pairs)))

        return self

    def random(self, max: int = 1) -> 'Map':
        """Get up to max random items in random order, keys are kept."""
        if max < 1:
            raise InvalidArgumentException(
                'Requested number of elements must be greater or equal than 1', 'max', max
            )

        if not self._items:
            return self._new()

        keys = random.sample(list(self._items), min(max, len(self._items)))
        return self._new({key: self._items[key] for key in keys})

    # Slicing and splicing
    def slice(self, offset: int, length: Optional[int] = None) -> 'Map':
        """Get a part of the map, negative values count from the end, keys are kept."""
        start, stop = Arr.slice_bounds(len(self._items), offset, length)
        return self._new(dict(list(self._items.items())[start:stop]))

    def splice(self, offset: int, length: Optional[int] = None, replacement: Any = None) -> 'Map':
        """Remove a part of the map and insert the replacement in its place.

        Works in place: integer keys are renumbered, string keys are kept and
        the replacement values get new integer keys. Returns the removed
        values as a new map with consecutive keys.
        """
        start, stop = Arr.slice_bounds(len(self._items), offset, length)
        removed = self._splice(start, stop, list(Arr.to_dict(replacement).values()))
        return self._new(dict(enumerate(removed)))

    def after(self, value: Any) -> 'Map':
        """Get the items after the given value."""
        position = self.pos(value)
        if position is None:
            return self._new()
        return self._new(dict(list(self._items.items())[position + 1:]))

    def before(self, value: Any) -> 'Map':
        """Get the items before the given value."""
        position = self.pos(value)
        pairs = list(self._items.items())
        return self._new(dict(pairs if position is None else pairs[:position]))

    # Aggregating
    def join(self, glue: str = '') -> str:
        """Join the string values, None and False become empty strings."""
        return glue.join(Str.to_string(value, 'join') for value in self._items.values())

    def sum(self, key: Optional[str] = None) -> Union[int, float]:
        """Sum the numeric values or the values of one column."""
        values = self.col(key).to_list() if key is not None else list(self._items.values())
        return sum((Str.to_number(value) for value in values if not Str.is_container(value)), 0)

    def min(self, key: Optional[str] = None) -> Any:
        """Get the smallest value or column value."""
        values = self.col(key).to_list() if key is not None else list(self._items.values())
        if not values:
            return None
        return min(values, key=cmp_to_key(Str.loose_compare))

    def max(self, key: Optional[str] = None) -> Any:
        """Get the largest value or column value."""
        values = self.col(key).to_list() if key is not None else list(self._items.values())
        if not values:
            return None
        return max(values, key=cmp_to_key(Str.loose_compare))

    # Utility methods
    def pipe(self, callback: Callable[['Map'], Any]) -> Any:
        """Pass the map to a callback and return the result."""
        return callback(self)

    def tap(self, callback: Callable[['Map'], Any]) -> 'Map':
        """Pass a copy of the map to a callback and return the map."""
        callback(self.copy())
        return self

    def dump(self, callback: Optional[Callable[[Dict[Key, Any]], Any]] = None) -> 'Map':
        """Print the items, or pass them to the callback."""
        if callback is not None:
            callback(self.all())
        else:
            pprint.pprint(self.all(), sort_dicts=False)
        return self

    # Serialization
    def to_array(self) -> NativeMap:
        """Convert to a dict, nested maps are converted too."""
        return Arr.to_native(self)

    def to_list(self) -> List[Any]:
        """Get the values as list."""
        return list(self._items.values())

    def to_json(self, force_object: bool = False, **options: Any) -> str:
        """Convert to JSON, consecutive integer keys from 0 produce arrays."""
        options.setdefault('default', str)
        return json.dumps(Arr.to_jsonable(self._items, force_object), **options)

    def to_url(self) -> str:
        """Convert to an URL query string."""
        return Arr.query(Arr.to_native(self._items))

    # Magic methods
    def __iter__(self) -> Iterator[Any]:
        """Iterate over the values."""
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        """Get length."""
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        """Check if the key exists."""
        if not isinstance(key, (int, str, float)) and key is not None:
            return False
        return Arr.normalize_key(key) in self._items

    def __bool__(self) -> bool:
        """Check if the map is not empty."""
        return not self.is_empty()

    def __getitem__(self, key: Any) -> Any:
        """Get a value by key, or a map by positional slice."""
        if isinstance(key, slice):
            return self._new(dict(list(self._items.items())[key]))
        return self._items[Arr.normalize_key(key)]

    def __setitem__(self, key: Any, value: Any) -> None:
        """Set a value by key, a None key appends."""
        if key is None:
            self._append(value)
        else:
            self._assign(Arr.normalize_key(key), value)

    def __delitem__(self, key: Any) -> None:
        """Delete a value by key."""
        normalized = Arr.normalize_key(key)
        if normalized not in self._items:
            raise KeyError(key)
        self._delete(normalized)

    def __eq__(self, other: object) -> bool:
        """Compare the ordered key/value pairs."""
        if isinstance(other, Map):
            return list(self._items.items()) == list(other._items.items())
        if isinstance(other, (dict, list, tuple)):
            return list(self._items.items()) == list(Arr.to_dict(other).items())
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __copy__(self) -> 'Map':
        return self.copy()

    def __deepcopy__(self, memo: Dict[int, Any]) -> 'Map':
        result = self._new(copy_module.deepcopy(dict(self._items), memo))
        result._sep = self._sep
        return result

    def __repr__(self) -> str:
        """String representation."""
        return f"{self.__class__.__name__}({self._items!r})"

    def __str__(self) -> str:
        """String representation."""
        return str(self._items)

    # Custom methods
    def __getattr__(self, name: str) -> Any:
        """Handle registered method calls."""
        if name.startswith('_'):
            raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

        method = self._registry.get(name)
        if method is not None:
            return method.bind(self)

        raise BadMethodCallException(self.__class__.__name__, name)
