from __future__ import annotations

from .SortFlag import SortFlag

__all__ = ['SortFlag']
