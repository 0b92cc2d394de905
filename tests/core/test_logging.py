"""
Tests for the logging manager and the JSON formatter.
"""

import json
import logging

import pytest

from total_economy.core.config import AppConfig
from total_economy.core.errors import ConfigurationError
from total_economy.core.logging import ContextFilter, JSONFormatter, LogManager


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def log_config(tmp_path):
    config = AppConfig()
    config.logging.log_directory = str(tmp_path / "logs")
    config.logging.console_handler_enabled = False
    return config


@pytest.fixture
def log_manager(log_config, restore_root_logger):
    manager = LogManager(log_config)
    manager.initialize()
    yield manager
    manager.shutdown()


def make_record(**extra):
    record = logging.LogRecord(
        name="total_economy.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="balance is %s",
        args=("5.00",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_formats_message_and_extra_fields(self):
        output = json.loads(JSONFormatter().format(make_record(account="alice")))

        assert output["message"] == "balance is 5.00"
        assert output["level"] == "INFO"
        assert output["logger"] == "total_economy.test"
        assert output["account"] == "alice"
        assert "args" not in output

    def test_context_timestamp_does_not_replace_record_time(self):
        record = make_record(timestamp="earlier")

        output = json.loads(JSONFormatter().format(record))

        assert output["timestamp"] != "earlier"
        assert output["timestamp"].endswith("+00:00")


class TestContextFilter:
    def test_adds_context_to_records(self):
        context_filter = ContextFilter()
        context_filter.set_context(session="shell")
        record = make_record()

        assert context_filter.filter(record) is True
        assert record.session == "shell"
        assert record.timestamp

        context_filter.clear_context()
        assert context_filter.context_data == {}


class TestLogManager:
    def test_initialize_creates_log_directory(self, log_manager, tmp_path):
        assert (tmp_path / "logs").is_dir()
        assert logging.getLogger().level == logging.INFO
        assert set(log_manager.loggers) == {"main", "error", "total_economy.cogs.economy"}

    def test_economy_records_are_written_as_json(self, log_manager, log_config, tmp_path):
        logger = logging.getLogger("total_economy.cogs.economy.service.account")

        logger.info("轉帳成功", extra={"account": "alice"})
        for handler in log_manager.loggers["total_economy.cogs.economy"].handlers:
            handler.flush()

        lines = (tmp_path / "logs" / log_config.logging.economy_log_file).read_text(
            encoding="utf-8"
        ).splitlines()
        record = json.loads(lines[-1])
        assert record["message"] == "轉帳成功"
        assert record["account"] == "alice"

    def test_get_logger_reuses_instances(self, log_manager):
        assert log_manager.get_logger("main") is log_manager.loggers["main"]
        assert log_manager.get_logger("total_economy.cli") is log_manager.get_logger(
            "total_economy.cli"
        )

    def test_log_context_is_restored(self, log_manager):
        with log_manager.log_context(session="shell"):
            assert log_manager.context_filter.context_data == {"session": "shell"}

        assert log_manager.context_filter.context_data == {}

    def test_shutdown_closes_handlers(self, log_manager):
        main_logger = log_manager.loggers["main"]

        log_manager.shutdown()

        assert main_logger.handlers == []
        assert log_manager.loggers == {}

    def test_unknown_level_is_a_configuration_error(self, log_config, restore_root_logger):
        log_config.logging.level = "LOUD"

        with pytest.raises(ConfigurationError) as exc_info:
            LogManager(log_config).initialize()
        assert exc_info.value.config_key == "logging_initialization"
