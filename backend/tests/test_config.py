"""
Citizen Notify — Settings and Logging Tests
"""

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from citizen_notify.config import Settings
from citizen_notify.logging_config import (
    CorrelationIdFilter,
    bind_correlation_id,
    correlation_id_var,
    setup_logging,
)


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        config = Settings(_env_file=None)

        assert config.database_url.startswith("sqlite+aiosqlite")
        assert config.is_sqlite
        assert config.profiles_collection_name == "profiles"
        assert config.sender_services_collection_name == "sender-services"
        assert config.serialize_updates is False

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db:5432/notify")
        monkeypatch.setenv("SERIALIZE_UPDATES", "true")
        monkeypatch.setenv("store_timeout_seconds", "2.5")

        config = Settings(_env_file=None)

        assert not config.is_sqlite
        assert config.serialize_updates is True
        assert config.store_timeout_seconds == 2.5

    def test_log_level_is_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, log_level="chatty")


class TestCorrelationId:
    def test_filter_injects_bound_id(self):
        token = correlation_id_var.set("-")
        try:
            bound = bind_correlation_id("msg-123")
            record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)

            assert CorrelationIdFilter().filter(record) is True
            assert bound == "msg-123"
            assert record.correlation_id == "msg-123"
        finally:
            correlation_id_var.reset(token)

    def test_generated_id(self):
        token = correlation_id_var.set("-")
        try:
            assert len(bind_correlation_id()) == 8
        finally:
            correlation_id_var.reset(token)


class TestSetupLogging:
    def setup_method(self):
        root = logging.getLogger()
        self._handlers = root.handlers[:]
        self._level = root.level

    def teardown_method(self):
        root = logging.getLogger()
        root.handlers[:] = self._handlers
        root.setLevel(self._level)

    def test_configures_root_logger(self):
        setup_logging("DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert any(isinstance(f, CorrelationIdFilter) for f in root.handlers[0].filters)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
