from .Map import Map
from .Arr import Arr, MISSING
from .Str import Str
from .MethodRegistry import MapMethod, MethodRegistry, default_registry
from .HigherOrder import ForwardsCalls, DynamicMap

__all__ = [
    "Map",
    "Arr",
    "MISSING",
    "Str",
    "MapMethod",
    "MethodRegistry",
    "default_registry",
    "ForwardsCalls",
    "DynamicMap"
]
