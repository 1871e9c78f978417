from __future__ import annotations

from .Logger import MapLogger, get_logger, set_level

__all__ = ['MapLogger', 'get_logger', 'set_level']
