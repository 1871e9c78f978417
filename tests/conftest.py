"""Shared fixtures for the map test suite."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from fluentmap.Support.MethodRegistry import default_registry
from fluentmap.Utils.Logger import PACKAGE_LOGGER
from fluentmap.config.map import get_map_settings


@pytest.fixture(autouse=True)
def restore_settings() -> Iterator[None]:
    """Restore the global settings, registered methods and log level after each test."""
    settings = get_map_settings()
    saved = settings.model_dump()
    methods = set(default_registry.all())
    level = logging.getLogger(PACKAGE_LOGGER).level

    yield

    for name, value in saved.items():
        setattr(settings, name, value)
    for name in set(default_registry.all()) - methods:
        default_registry.forget(name)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
