"""Tests for logging setup and configuration."""

import json
import logging
import re
import sys

import pytest

from core.logging.context import clear_log_context, get_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import (
    NOISY_LOGGERS,
    generate_run_id,
    log_consumer_startup,
    setup_logging,
    verbosity_to_level,
)


class TestVerbosityToLevel:

    def test_quiet_shows_errors_only(self):
        assert verbosity_to_level(0) == logging.ERROR
        assert verbosity_to_level(-1) == logging.ERROR

    def test_default_is_warning(self):
        assert verbosity_to_level(1) == logging.WARNING

    def test_single_v_is_info(self):
        assert verbosity_to_level(2) == logging.INFO

    def test_double_v_and_above_is_debug(self):
        assert verbosity_to_level(3) == logging.DEBUG
        assert verbosity_to_level(7) == logging.DEBUG


class TestSetupLogging:

    @pytest.fixture(autouse=True)
    def clear_context(self):
        clear_log_context()
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.NOTSET)
        yield
        clear_log_context()
        # Clean up root logger handlers
        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.NOTSET)

    def test_returns_named_logger(self):
        logger = setup_logging(name="test")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "test"

    def test_console_handler_writes_to_stderr(self):
        setup_logging(name="test")

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr
        assert isinstance(handlers[0].formatter, ConsoleFormatter)

    def test_console_level_follows_verbosity(self):
        setup_logging(name="test", verbosity=2)

        assert logging.getLogger().handlers[0].level == logging.INFO
        assert logging.getLogger().level == logging.DEBUG

    def test_tracebacks_only_at_debug(self):
        setup_logging(name="test", verbosity=1)
        assert logging.getLogger().handlers[0].formatter._show_tracebacks is False

        setup_logging(name="test", verbosity=3)
        assert logging.getLogger().handlers[0].formatter._show_tracebacks is True

    def test_sets_log_context_from_params(self):
        setup_logging(name="test", stage="consume", run_id="r-1")

        ctx = get_log_context()
        assert ctx["stage"] == "consume"
        assert ctx["run_id"] == "r-1"

    def test_adds_json_file_handler(self, tmp_path):
        log_file = tmp_path / "nested" / "kfc.log"
        logger = setup_logging(name="test", log_file=log_file)

        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1
        assert isinstance(file_handlers[0].formatter, JSONFormatter)

        logger.debug("written to file", extra={"topic": "events"})
        file_handlers[0].flush()

        lines = log_file.read_text().splitlines()
        entries = [json.loads(line) for line in lines]
        assert any(e["message"] == "written to file" and e["topic"] == "events" for e in entries)

    def test_plain_text_file_handler(self, tmp_path):
        setup_logging(name="test", log_file=tmp_path / "kfc.log", json_format=False)

        file_handler = [
            h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
        ][0]
        assert not isinstance(file_handler.formatter, JSONFormatter)

    def test_suppresses_noisy_loggers(self):
        setup_logging(name="test", verbosity=2)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_keeps_noisy_loggers_at_debug_verbosity(self):
        setup_logging(name="test", verbosity=3)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.NOTSET

    def test_replaces_existing_handlers(self):
        setup_logging(name="test")
        setup_logging(name="test")

        assert len(logging.getLogger().handlers) == 1


class TestLogConsumerStartup:

    def test_logs_settings_at_debug(self, caplog):
        logger = logging.getLogger("test.startup")
        with caplog.at_level(logging.DEBUG, logger="test.startup"):
            log_consumer_startup(
                logger,
                topic="events",
                bootstrap_servers="broker:9092",
                partition=None,
                offset_spec="beginning",
                extra_config={"group_id": "kfc"},
            )

        messages = [r.getMessage() for r in caplog.records]
        assert all(r.levelno == logging.DEBUG for r in caplog.records)
        assert "Starting consumer for topic events" in messages
        assert "Kafka bootstrap servers: broker:9092" in messages
        assert "Partition: all" in messages
        assert "Starting offset: beginning" in messages
        assert "group_id: kfc" in messages

    def test_logs_selected_partition(self, caplog):
        logger = logging.getLogger("test.startup")
        with caplog.at_level(logging.DEBUG, logger="test.startup"):
            log_consumer_startup(logger, topic="events", bootstrap_servers="b:9092", partition=3)

        assert "Partition: 3" in [r.getMessage() for r in caplog.records]


class TestGenerateRunId:

    def test_format(self):
        assert re.fullmatch(r"r-\d{8}-\d{6}-[0-9a-f]{4}", generate_run_id())

    def test_unique(self):
        assert len({generate_run_id() for _ in range(20)}) > 1
