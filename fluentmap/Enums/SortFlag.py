from __future__ import annotations

from enum import IntFlag


class SortFlag(IntFlag):
    """Comparison modes understood by the sort methods.

    Plain integers are accepted wherever a flag is expected, so
    `SortFlag.STRING | SortFlag.FLAG_CASE` and `10` are the same option.
    """

    REGULAR = 0
    NUMERIC = 1
    STRING = 2
    LOCALE_STRING = 5
    NATURAL = 6
    FLAG_CASE = 8

    @property
    def mode(self) -> 'SortFlag':
        """Get the comparison mode without the case flag."""
        return SortFlag(int(self) & ~int(SortFlag.FLAG_CASE))

    @property
    def ignores_case(self) -> bool:
        """Check if the case-insensitive flag is set."""
        return bool(self & SortFlag.FLAG_CASE)
