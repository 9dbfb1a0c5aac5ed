"""
Tests for centralized logging configuration.
"""

import io
import logging

import pytest
import yaml

from schema_weaver.logging_config import configure_logging


@pytest.fixture
def bare_root_logger():
    """Detach root handlers for the duration of a test, then restore them."""
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    root.handlers = []
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)


class TestConfigureLogging:
    """Test suite for configure_logging."""

    def test_configure_logging_uses_given_stream_and_level(self, bare_root_logger, tmp_path):
        # Arrange
        stream = io.StringIO()

        # Act
        configure_logging("WARNING", config_path=tmp_path / "missing.yaml", stream=stream)
        logging.getLogger("schema_weaver.test").warning("visible")

        # Assert
        assert bare_root_logger.level == logging.WARNING
        assert "visible" in stream.getvalue()

    def test_configure_logging_applies_module_levels(self, bare_root_logger, tmp_path):
        # Arrange
        config = tmp_path / "logging.yaml"
        config.write_text(yaml.dump({"module_levels": {"schema_weaver.quiet": "ERROR"}}))

        # Act
        configure_logging(config_path=config, stream=io.StringIO())

        # Assert
        assert logging.getLogger("schema_weaver.quiet").level == logging.ERROR
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_configure_logging_is_idempotent(self, bare_root_logger, tmp_path):
        # Arrange
        configure_logging(config_path=tmp_path / "missing.yaml", stream=io.StringIO())
        handlers = bare_root_logger.handlers[:]

        # Act
        configure_logging("DEBUG", config_path=tmp_path / "missing.yaml", stream=io.StringIO())

        # Assert
        assert bare_root_logger.handlers == handlers

    def test_configure_logging_invalid_explicit_config_raises(self, bare_root_logger, tmp_path):
        config = tmp_path / "logging.yaml"
        config.write_text("root_level: [broken")

        with pytest.raises(ValueError, match="Invalid YAML"):
            configure_logging(config_path=config)
