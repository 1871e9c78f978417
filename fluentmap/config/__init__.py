from __future__ import annotations

from .map import MapSettings, map_settings, get_map_settings, configure

__all__ = [
    'MapSettings',
    'map_settings',
    'get_map_settings',
    'configure'
]
