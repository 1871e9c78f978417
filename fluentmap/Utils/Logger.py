from __future__ import annotations

import logging
import sys
from typing import Optional, Dict, Union

from fluentmap.config.map import get_map_settings

LogContext = Dict[str, Union[str, int, float, bool, None]]

PACKAGE_LOGGER = 'fluentmap'


class MapLogger:
    """Package logger with key=value context formatting."""
    
    def __init__(self, name: str = PACKAGE_LOGGER) -> None:
        self.name = name
        self.logger = logging.getLogger(name)
        
        root = logging.getLogger(PACKAGE_LOGGER)
        if not root.handlers:
            self._setup_default_handler(root)
    
    def _setup_default_handler(self, root: logging.Logger) -> None:
        """Set up default logging handler."""
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s in %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(get_map_settings().get_log_level())
    
    def debug(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log debug message."""
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_message(message, context))
    
    def info(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log info message."""
        self.logger.info(self._format_message(message, context))
    
    def warning(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log warning message."""
        self.logger.warning(self._format_message(message, context))
    
    def error(self, message: str, context: Optional[LogContext] = None) -> None:
        """Log error message."""
        self.logger.error(self._format_message(message, context))
    
    def _format_message(self, message: str, context: Optional[LogContext] = None) -> str:
        """Format message with context."""
        if context:
            context_str = " | ".join(f"{k}={v}" for k, v in context.items())
            return f"{message} | {context_str}"
        return message


def get_logger(name: Optional[str] = None) -> MapLogger:
    """Get a package logger instance."""
    if name is None:
        name = PACKAGE_LOGGER
    return MapLogger(name)


def set_level(level: str) -> None:
    """Change the level of the package logger."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(level.upper())
