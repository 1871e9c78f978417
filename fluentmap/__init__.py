from .Support import Map, Arr, Str, MethodRegistry, DynamicMap
from .Enums import SortFlag
from .Exceptions import (
    MapException,
    InvalidArgumentException,
    TypeMismatchException,
    BadMethodCallException,
    InvalidJsonException,
    InvalidPatternException
)
from .config import MapSettings, configure, get_map_settings
from .helpers import collect, is_map

__version__ = "1.0.0"

__all__ = [
    "Map",
    "DynamicMap",
    "Arr",
    "Str",
    "MethodRegistry",
    "SortFlag",
    "MapException",
    "InvalidArgumentException",
    "TypeMismatchException",
    "BadMethodCallException",
    "InvalidJsonException",
    "InvalidPatternException",
    "MapSettings",
    "configure",
    "get_map_settings",
    "collect",
    "is_map"
]
