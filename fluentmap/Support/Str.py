from __future__ import annotations

import json
import locale
import math
import re
from typing import Any, Callable, Dict, List, Pattern, Tuple, Union
from collections.abc import Mapping

from fluentmap.Enums.SortFlag import SortFlag
from fluentmap.Exceptions import TypeMismatchException


class Str:
    """String and number coercion helpers for loosely typed values."""

    # Cache for compiled regex patterns
    _patterns: Dict[str, Pattern[str]] = {}

    _NUMERIC = re.compile(r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$')
    _LEADING_NUMERIC = re.compile(r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?')
    _CHUNKS = re.compile(r'(\d+)')
    _DELIMITED = re.compile(r'^([/#~@%!|])(.*)([/#~@%!|])([imsx]*)$', re.DOTALL)
    _MODIFIERS = {'i': re.IGNORECASE, 'm': re.MULTILINE, 's': re.DOTALL, 'x': re.VERBOSE}

    @staticmethod
    def is_container(value: Any) -> bool:
        """Determine whether the value holds other values."""
        from fluentmap.Support.Map import Map
        return isinstance(value, (Map, Mapping, list, tuple, set, frozenset))

    @staticmethod
    def to_string(value: Any, operation: str = 'join') -> str:
        """Convert a scalar to its string form, None and False become empty strings."""
        if value is None or value is False:
            return ''
        if value is True:
            return '1'
        if isinstance(value, str):
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if math.isnan(value):
                return 'NAN'
            if math.isinf(value):
                return 'INF' if value > 0 else '-INF'
            if value.is_integer() and abs(value) < 1e15:
                return str(int(value))
            return repr(value)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode('utf-8', errors='replace')
        if Str.is_container(value):
            raise TypeMismatchException(value, operation)
        return str(value)

    @staticmethod
    def to_key(value: Any) -> Tuple[str, str]:
        """Get the identity used to compare values for equality, containers never equal scalars."""
        if Str.is_container(value):
            from fluentmap.Support.Arr import Arr
            return ('container', json.dumps(Arr.to_jsonable(value), sort_keys=True, default=str))
        return ('scalar', Str.to_string(value, 'compare'))

    @staticmethod
    def is_numeric(value: Any) -> bool:
        """Determine whether the value is a number or a numeric string."""
        if isinstance(value, bool):
            return False
        if isinstance(value, (int, float)):
            return True
        if isinstance(value, str):
            return Str._NUMERIC.match(value) is not None
        return False

    @staticmethod
    def to_number(value: Any) -> Union[int, float]:
        """Convert a value to int or float, reading a leading number from strings."""
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return value
        if value is None:
            return 0
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode('utf-8', errors='replace')
        if isinstance(value, str):
            match = Str._LEADING_NUMERIC.match(value)
            if match is None:
                return 0
            text = match.group(0).strip()
            if match.group(2) or match.group(3) or text.lstrip('+-').startswith('.'):
                return float(text)
            return int(text)
        if Str.is_container(value):
            return 1 if len(value) else 0
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def is_truthy(value: Any) -> bool:
        """Python truthiness; an empty map is falsy."""
        return bool(value)

    @staticmethod
    def sign(value: Union[int, float]) -> int:
        """Reduce a comparison result to -1, 0 or 1."""
        return (value > 0) - (value < 0)

    @staticmethod
    def compare(left: Any, right: Any) -> int:
        """Compare two plain values, -1, 0 or 1."""
        return (left > right) - (left < right)

    @staticmethod
    def casecmp(left: Any, right: Any) -> int:
        """Case-insensitive string comparison."""
        return Str.compare(
            Str.to_string(left, 'casecmp').lower(),
            Str.to_string(right, 'casecmp').lower()
        )

    @staticmethod
    def natural_compare(left: Any, right: Any, ignore_case: bool = False) -> int:
        """Compare strings in natural order, so that 'img12' comes after 'img2'."""
        a = Str.to_string(left, 'sort').lstrip()
        b = Str.to_string(right, 'sort').lstrip()

        if ignore_case:
            a, b = a.lower(), b.lower()

        a_parts = Str._CHUNKS.split(a)
        b_parts = Str._CHUNKS.split(b)

        for a_part, b_part in zip(a_parts, b_parts):
            if a_part == b_part:
                continue
            if a_part.isdigit() and b_part.isdigit():
                result = Str.compare(int(a_part), int(b_part))
                if result:
                    return result
                result = Str.compare(len(a_part), len(b_part))
                if result:
                    return result
                continue
            return Str.compare(a_part, b_part)

        return Str.compare(len(a_parts), len(b_parts))

    @staticmethod
    def loose_compare(left: Any, right: Any) -> int:
        """Type-aware comparison of two arbitrary values."""
        if isinstance(left, bool) or isinstance(right, bool):
            return Str.compare(bool(left), bool(right))

        if left is None or right is None:
            if isinstance(left, str) or isinstance(right, str):
                return Str.compare(Str.to_string(left, 'sort'), Str.to_string(right, 'sort'))
            return Str.compare(bool(left), bool(right))

        left_num = isinstance(left, (int, float))
        right_num = isinstance(right, (int, float))

        if left_num and right_num:
            return Str.compare(left, right)

        if isinstance(left, str) and isinstance(right, str):
            if Str.is_numeric(left) and Str.is_numeric(right):
                return Str.compare(Str.to_number(left), Str.to_number(right))
            return Str.compare(left, right)

        if left_num and isinstance(right, str):
            if Str.is_numeric(right):
                return Str.compare(left, Str.to_number(right))
            return Str.compare(Str.to_string(left, 'sort'), right)

        if isinstance(left, str) and right_num:
            return -Str.loose_compare(right, left)

        left_items = Str._container_items(left)
        right_items = Str._container_items(right)

        if left_items is not None and right_items is not None:
            result = Str.compare(len(left_items), len(right_items))
            if result:
                return result
            for key, value in left_items.items():
                if key not in right_items:
                    return 1
                result = Str.loose_compare(value, right_items[key])
                if result:
                    return result
            return 0

        if left_items is not None:
            return 1
        if right_items is not None:
            return -1

        try:
            return Str.compare(left, right)
        except TypeError:
            return Str.compare(str(left), str(right))

    @staticmethod
    def _container_items(value: Any) -> Union[Dict[Any, Any], None]:
        """Get the key/value pairs of a container or None."""
        from fluentmap.Support.Map import Map

        if isinstance(value, Map):
            return value.all()
        if isinstance(value, Mapping):
            return dict(value)
        if isinstance(value, (list, tuple)):
            return dict(enumerate(value))
        return None

    @staticmethod
    def comparator(flags: Union[SortFlag, int] = SortFlag.REGULAR) -> Callable[[Any, Any], int]:
        """Get the 3-way comparison function for the given sort flags."""
        flags = SortFlag(flags)
        mode = flags.mode
        ignore_case = flags.ignores_case

        if mode == SortFlag.NUMERIC:
            return lambda a, b: Str.compare(Str.to_number(a), Str.to_number(b))

        if mode == SortFlag.STRING:
            if ignore_case:
                return lambda a, b: Str.compare(
                    Str.to_string(a, 'sort').lower(), Str.to_string(b, 'sort').lower()
                )
            return lambda a, b: Str.compare(Str.to_string(a, 'sort'), Str.to_string(b, 'sort'))

        if mode == SortFlag.LOCALE_STRING:
            return lambda a, b: Str.sign(locale.strcoll(Str.to_string(a, 'sort'), Str.to_string(b, 'sort')))

        if mode == SortFlag.NATURAL:
            return lambda a, b: Str.natural_compare(a, b, ignore_case)

        return Str.loose_compare

    @staticmethod
    def pattern(expression: str) -> Pattern[str]:
        """Compile a regular expression, accepting delimited "/.../flags" expressions."""
        if expression in Str._patterns:
            return Str._patterns[expression]

        flags = 0
        source = expression
        match = Str._DELIMITED.match(expression)

        if match and match.group(1) == match.group(3):
            source = match.group(2)
            for modifier in match.group(4):
                flags |= Str._MODIFIERS.get(modifier, 0)

        compiled = re.compile(source, flags)
        Str._patterns[expression] = compiled
        return compiled

    @staticmethod
    def split(delimiter: str, subject: str, limit: int) -> List[str]:
        """Split a string into at most limit parts, a negative limit drops parts from the end."""
        parts = subject.split(delimiter) if delimiter else list(subject)

        if limit > 0:
            if len(parts) > limit:
                return parts[:limit - 1] + [delimiter.join(parts[limit - 1:])]
            return parts

        if limit < 0:
            return parts[:limit]

        return [subject]
