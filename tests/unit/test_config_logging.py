"""Unit tests for settings and logging."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from fluentmap import Map, MapSettings, configure, get_map_settings, InvalidJsonException, InvalidPatternException
from fluentmap.Utils.Logger import MapLogger, PACKAGE_LOGGER, get_logger


class TestMapSettings:
    """Test suite for the settings model."""

    def test_defaults(self) -> None:
        """Test the default values."""
        settings = MapSettings(delimiter='/', reduce_drains=False, json_max_depth=512, log_level='WARNING')
        assert settings.get_log_level() == logging.WARNING

    def test_environment_defaults(self) -> None:
        """Test the global settings instance."""
        settings = get_map_settings()
        assert settings.delimiter
        assert settings.json_max_depth >= 1

    def test_validation(self) -> None:
        """Test invalid values."""
        with pytest.raises(ValidationError):
            MapSettings(delimiter='')
        with pytest.raises(ValidationError):
            MapSettings(log_level='LOUD')
        with pytest.raises(ValidationError):
            MapSettings(json_max_depth=0)

    def test_log_level_is_normalized(self) -> None:
        """Test that level names are upper-cased."""
        assert MapSettings(log_level='debug').log_level == 'DEBUG'

    def test_assignment_is_validated(self) -> None:
        """Test that the global instance rejects invalid values."""
        with pytest.raises(ValidationError):
            get_map_settings().delimiter = ''

    def test_configure(self) -> None:
        """Test changing the global settings."""
        settings = configure(delimiter='.', json_max_depth=3, log_level='debug')

        assert settings.delimiter == '.'
        assert settings.json_max_depth == 3
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
        assert Map({'a': {'b': 1}}).get('a.b') == 1

        with pytest.raises(InvalidJsonException):
            Map.from_json('[[[[1]]]]')


class TestMapLogger:
    """Test suite for the package logger."""

    def test_context_formatting(self) -> None:
        """Test appending key=value pairs."""
        logger = MapLogger('fluentmap.test')
        assert logger._format_message('Done', {'a': 1, 'b': 'x'}) == 'Done | a=1 | b=x'
        assert logger._format_message('Done') == 'Done'

    def test_default_handler(self) -> None:
        """Test that the package logger has one handler."""
        get_logger()
        get_logger('fluentmap.other')
        assert len(logging.getLogger(PACKAGE_LOGGER).handlers) == 1

    def test_copy_on_write_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the debug event of separating shared storage."""
        with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
            m = Map([1])
            m.copy().push(2)

        assert 'Copy-on-write split' in caplog.text

    def test_delimiter_change_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test the debug event of changing the delimiter."""
        with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
            Map.delimiter('.')

        assert 'Changed path delimiter | old=/ | new=.' in caplog.text

    def test_errors_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test warnings before exceptions are raised."""
        with caplog.at_level(logging.WARNING, logger=PACKAGE_LOGGER):
            with pytest.raises(InvalidJsonException):
                Map.from_json('{')
            with pytest.raises(InvalidPatternException):
                Map(['a']).grep('[')

        assert 'Invalid JSON string' in caplog.text
        assert 'Invalid regular expression' in caplog.text
