from __future__ import annotations

import inspect
import math
import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from fluentmap.Exceptions import InvalidArgumentException
from fluentmap.Types import JsonValue, Key

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class _Missing:
    """Marker for values that are not present."""

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class Arr:
    """Array helper class for keys, paths and nested containers."""

    _INT_KEY = re.compile(r'^(0|-?[1-9][0-9]*)$')

    @staticmethod
    def normalize_key(key: Any) -> Key:
        """Normalize a key to int or str, numeric strings become integers."""
        if isinstance(key, bool):
            return int(key)
        if isinstance(key, int):
            return key if INT64_MIN <= key <= INT64_MAX else str(key)
        if isinstance(key, str):
            if Arr._INT_KEY.match(key):
                number = int(key)
                if INT64_MIN <= number <= INT64_MAX:
                    return number
            return key
        if isinstance(key, float):
            if math.isnan(key) or math.isinf(key):
                raise InvalidArgumentException(f"Illegal key `{key}`, only finite numbers are allowed", 'key', key)
            return Arr.normalize_key(int(key))
        if key is None:
            return ''
        raise InvalidArgumentException(
            f"Illegal key type `{type(key).__name__}`, only int and str keys are allowed",
            'key',
            key
        )

    @staticmethod
    def is_iterable(value: Any) -> bool:
        """Determine whether the value is a container that can be flattened."""
        from fluentmap.Support.Map import Map
        return isinstance(value, (Map, Mapping, list, tuple, set, frozenset))

    @staticmethod
    def pairs(value: Any) -> Iterator[Tuple[Any, Any]]:
        """Iterate over the key/value pairs of a container."""
        from fluentmap.Support.Map import Map

        if isinstance(value, Map):
            return iter(list(value.items()))
        if isinstance(value, Mapping):
            return iter(list(value.items()))
        return enumerate(list(value))

    @staticmethod
    def to_dict(elements: Any) -> Dict[Key, Any]:
        """Convert any source into a dict with normalized keys."""
        from fluentmap.Support.Map import Map

        if elements is None:
            return {}
        if isinstance(elements, Map):
            return elements.all()
        if isinstance(elements, (str, bytes, bytearray)):
            return {0: elements}
        if isinstance(elements, Mapping) or hasattr(elements, 'items') and callable(elements.items):
            result: Dict[Key, Any] = {}
            for key, value in elements.items():
                result[Arr.normalize_key(key)] = value
            return result
        if isinstance(elements, Iterable):
            return dict(enumerate(elements))
        return {0: elements}

    @staticmethod
    def wrap_keys(keys: Any) -> List[Any]:
        """Wrap a single key in a list, containers of keys are returned as list of values."""
        from fluentmap.Support.Map import Map

        if isinstance(keys, Map):
            return keys.values().to_list()
        if isinstance(keys, (list, tuple, set, frozenset)):
            return list(keys)
        return [keys]

    @staticmethod
    def next_index(items: Dict[Key, Any]) -> int:
        """Get the key for appending a value, one above the largest integer key."""
        highest: Optional[int] = None
        for key in items:
            if isinstance(key, int) and (highest is None or key > highest):
                highest = key
        return 0 if highest is None else highest + 1

    @staticmethod
    def is_list(items: Union[Dict[Key, Any], Mapping[Any, Any]]) -> bool:
        """Determine if the keys are 0, 1, 2, ... in this order."""
        for expected, key in enumerate(items):
            if key != expected or isinstance(key, bool):
                return False
        return True

    @staticmethod
    def get_value(entry: Any, parts: List[str]) -> Any:
        """Resolve path segments one level at a time, MISSING if a segment is not found."""
        from fluentmap.Support.Map import Map

        for part in parts:
            if isinstance(entry, Map):
                key = Arr.normalize_key(part)
                if not entry.has_key(key):
                    return MISSING
                entry = entry.get(key)
            elif isinstance(entry, Mapping):
                if part in entry:
                    entry = entry[part]
                else:
                    key = Arr.normalize_key(part)
                    if key in entry:
                        entry = entry[key]
                    else:
                        return MISSING
            elif isinstance(entry, (list, tuple)):
                key = Arr.normalize_key(part)
                if isinstance(key, int) and 0 <= key < len(entry):
                    entry = entry[key]
                else:
                    return MISSING
            elif entry is not None and not isinstance(entry, (str, bytes, int, float)) \
                    and isinstance(part, str) and not part.startswith('_') and hasattr(entry, part):
                entry = getattr(entry, part)
            else:
                return MISSING

        return entry

    @staticmethod
    def fallback(default: Any) -> Any:
        """Resolve a default value: raise exceptions, call callables, return anything else."""
        if isinstance(default, BaseException):
            raise default
        if isinstance(default, type) and issubclass(default, BaseException):
            raise default()
        if callable(default):
            return default()
        return default

    @staticmethod
    def slice_bounds(count: int, offset: int, length: Optional[int] = None) -> Tuple[int, int]:
        """Get start and stop positions for an offset/length pair."""
        if offset < 0:
            start = max(count + offset, 0)
        else:
            start = min(offset, count)

        if length is None:
            stop = count
        elif length < 0:
            stop = max(count + length, start)
        else:
            stop = min(start + length, count)

        return start, stop

    @staticmethod
    def flatten(entries: Any, result: List[Any], depth: int) -> None:
        """Append the leaf values of nested containers to result."""
        for _, entry in Arr.pairs(entries):
            if depth > 0 and Arr.is_iterable(entry):
                Arr.flatten(entry, result, depth - 1)
            else:
                result.append(entry)

    @staticmethod
    def kflatten(entries: Any, result: Dict[Key, Any], depth: int) -> None:
        """Merge nested containers into result, later keys overwrite earlier ones."""
        for key, entry in Arr.pairs(entries):
            if depth > 0 and Arr.is_iterable(entry):
                Arr.kflatten(entry, result, depth - 1)
            else:
                result[Arr.normalize_key(key)] = entry

    @staticmethod
    def to_native(value: Any) -> Any:
        """Convert nested maps into dicts recursively."""
        from fluentmap.Support.Map import Map

        if isinstance(value, Map):
            return {key: Arr.to_native(item) for key, item in value.items()}
        if isinstance(value, dict):
            return {key: Arr.to_native(item) for key, item in value.items()}
        if isinstance(value, list):
            return [Arr.to_native(item) for item in value]
        if isinstance(value, tuple):
            return tuple(Arr.to_native(item) for item in value)
        return value

    @staticmethod
    def to_jsonable(value: Any, force_object: bool = False) -> JsonValue:
        """Convert maps and dicts into lists or str-keyed dicts for the JSON encoder."""
        from fluentmap.Support.Map import Map

        if isinstance(value, Map):
            value = value.all()

        if isinstance(value, Mapping):
            if not force_object and Arr.is_list(value):
                return [Arr.to_jsonable(item, force_object) for item in value.values()]
            return {str(key): Arr.to_jsonable(item, force_object) for key, item in value.items()}

        if isinstance(value, (list, tuple)):
            if force_object:
                return {str(key): Arr.to_jsonable(item, force_object) for key, item in enumerate(value)}
            return [Arr.to_jsonable(item, force_object) for item in value]

        if isinstance(value, (set, frozenset)):
            return [Arr.to_jsonable(item, force_object) for item in value]

        return value

    @staticmethod
    def merge_recursive(first: Dict[Key, Any], second: Dict[Key, Any]) -> Dict[Key, Any]:
        """Recursively merge two dicts, colliding string keys collect both values."""
        result = dict(first)

        for key, value in second.items():
            if key not in result:
                result[key] = value
            elif Arr.is_iterable(result[key]) and Arr.is_iterable(value):
                merged = Arr.merge_recursive(Arr.to_dict(result[key]), Arr.to_dict(value))
                result[key] = Arr.rebuild(result[key], merged)
            elif isinstance(key, str):
                existing = result[key]
                collected = list(existing) if isinstance(existing, list) else [existing]
                collected.extend(value if isinstance(value, list) else [value])
                result[key] = collected
            else:
                result[key] = value

        return result

    @staticmethod
    def replace_recursive(first: Dict[Key, Any], second: Dict[Key, Any]) -> Dict[Key, Any]:
        """Recursively replace values of the first dict with the ones of the second."""
        result = dict(first)

        for key, value in second.items():
            if key in result and Arr.is_iterable(result[key]) and Arr.is_iterable(value):
                replaced = Arr.replace_recursive(Arr.to_dict(result[key]), Arr.to_dict(value))
                result[key] = Arr.rebuild(result[key], replaced)
            else:
                result[key] = value

        return result

    @staticmethod
    def rebuild(original: Any, items: Dict[Key, Any]) -> Any:
        """Return items in the container type of the original value."""
        from fluentmap.Support.Map import Map

        if isinstance(original, Map):
            result = original.__class__(items, registry=original._registry)
            result._sep = original._sep
            return result
        if isinstance(original, (list, tuple)) and Arr.is_list(items):
            return type(original)(items.values())
        return items

    @staticmethod
    def query(data: Dict[Key, Any]) -> str:
        """Convert nested dicts and lists into a query string like 'a[b]=1&c=2'."""
        import urllib.parse

        def build(entry: Any, prefix: str) -> List[Tuple[str, str]]:
            pairs: List[Tuple[str, str]] = []
            for key, value in Arr.pairs(entry):
                name = f"{prefix}[{key}]" if prefix else str(key)
                if value is None:
                    continue
                if isinstance(value, (dict, list, tuple)):
                    pairs.extend(build(value, name))
                elif isinstance(value, bool):
                    pairs.append((name, '1' if value else '0'))
                else:
                    from fluentmap.Support.Str import Str
                    pairs.append((name, Str.to_string(value, 'to_url')))
            return pairs

        return urllib.parse.urlencode(build(data, ''), quote_via=urllib.parse.quote)

    @staticmethod
    def depth(value: Any, limit: Optional[int] = None) -> int:
        """Get the nesting depth of dicts and lists, stopping as soon as it exceeds limit."""
        deepest = 0
        pending: List[Tuple[Any, int]] = [(value, 1)]

        while pending:
            entry, level = pending.pop()
            if isinstance(entry, dict):
                children: Iterable[Any] = entry.values()
            elif isinstance(entry, list):
                children = entry
            else:
                continue

            if level > deepest:
                deepest = level
                if limit is not None and deepest > limit:
                    break
            pending.extend((child, level + 1) for child in children)

        return deepest

    @staticmethod
    def bind(callback: Callable[..., Any], limit: int) -> Callable[..., Any]:
        """Wrap a callback so it only receives the positional arguments it accepts."""
        try:
            signature = inspect.signature(callback)
        except (TypeError, ValueError):
            count = 1
        else:
            count = 0
            for parameter in signature.parameters.values():
                if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
                    count = limit
                    break
                if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
                    count += 1

        if count >= limit:
            return callback

        def bound(*args: Any) -> Any:
            return callback(*args[:count])

        return bound
