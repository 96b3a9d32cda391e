"""Tests for configuration loading and logging setup."""

import logging

import pydantic
import pytest

from ims.infrastructure.logging_setup import setup_logging
from ims.infrastructure.settings import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("IMS_RESERVATION_TTL_MINUTES", raising=False)
        settings = Settings()
        assert settings.reservation_ttl_minutes == 15
        assert settings.max_retries == 3
        assert settings.database_url.startswith("sqlite:///")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("IMS_RESERVATION_TTL_MINUTES", "30")
        monkeypatch.setenv("IMS_DATABASE_URL", "postgresql+psycopg://inventory@db/inventory")
        settings = Settings()
        assert settings.reservation_ttl_minutes == 30
        assert settings.database_url == "postgresql+psycopg://inventory@db/inventory"

    def test_invalid_values_rejected(self, monkeypatch):
        monkeypatch.setenv("IMS_MAX_RETRIES", "0")
        with pytest.raises(pydantic.ValidationError):
            Settings()


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def _restore_ims_logger(self):
        logger = logging.getLogger("ims")
        handlers, level = list(logger.handlers), logger.level
        yield
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers = handlers
        logger.setLevel(level)

    def test_file_handler_and_level(self, tmp_path):
        log_file = tmp_path / "logs" / "ims.log"
        logger = setup_logging(Settings(log_level="debug", log_file=log_file))

        logger.getChild("test").debug("hello from the test")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert "hello from the test" in log_file.read_text()

    def test_calling_twice_does_not_duplicate_handlers(self, tmp_path):
        settings = Settings(log_file=tmp_path / "ims.log")
        setup_logging(settings)
        count = len(logging.getLogger("ims").handlers)
        setup_logging(settings)
        assert len(logging.getLogger("ims").handlers) == count
