"""Map Configuration

This module defines the process-wide settings of the map package: the path
delimiter, the logging level and the compatibility switches. Values are read
from the environment once, when the module is imported, and validated.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MapSettings(BaseModel):
    """Map configuration settings with validation."""
    
    # Path access
    delimiter: str = Field(
        default=os.getenv("FLUENTMAP_DELIMITER", "/"),
        description="Separator used to split path keys like 'a/b/c'"
    )
    
    # Compatibility
    reduce_drains: bool = Field(
        default=os.getenv("FLUENTMAP_REDUCE_DRAINS", "false").lower() == "true",
        description="Clear the source map after reduce() unless told otherwise"
    )
    
    # JSON decoding
    json_max_depth: int = Field(
        default=int(os.getenv("FLUENTMAP_JSON_MAX_DEPTH", "512")),
        description="Maximum nesting depth accepted by from_json()",
        ge=1
    )
    
    # Logging
    log_level: str = Field(
        default=os.getenv("FLUENTMAP_LOG_LEVEL", "WARNING"),
        description="Level of the package logger"
    )
    
    model_config = ConfigDict(validate_assignment=True)
    
    @field_validator('delimiter')
    @classmethod
    def validate_delimiter(cls, v: str) -> str:
        """Validate path delimiter."""
        if not v:
            raise ValueError('Path delimiter must not be empty')
        return v
    
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level name."""
        level = v.upper()
        if level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unsupported log level: {v}')
        return level
    
    def get_log_level(self) -> int:
        """Get log level as logging constant."""
        return int(getattr(logging, self.log_level))


# Create global settings instance
map_settings = MapSettings()


def get_map_settings() -> MapSettings:
    """Get map settings instance."""
    return map_settings


def configure(
    delimiter: Optional[str] = None,
    reduce_drains: Optional[bool] = None,
    json_max_depth: Optional[int] = None,
    log_level: Optional[str] = None
) -> MapSettings:
    """Update the global settings in place and return them."""
    if delimiter is not None:
        map_settings.delimiter = delimiter
    if reduce_drains is not None:
        map_settings.reduce_drains = reduce_drains
    if json_max_depth is not None:
        map_settings.json_max_depth = json_max_depth
    if log_level is not None:
        from fluentmap.Utils.Logger import set_level
        map_settings.log_level = log_level
        set_level(map_settings.log_level)
    return map_settings
