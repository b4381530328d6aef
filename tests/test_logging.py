"""Tests for structured logging setup."""

import logging
import logging.handlers
import pytest
import structlog

from producer_failover.utils.logging import setup_logging, get_logger, producer_context

from conftest import make_config


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    urllib3_level = logging.getLogger("urllib3").level
    yield
    logging.getLogger("urllib3").setLevel(urllib3_level)
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    structlog.reset_defaults()


class TestSetupLogging:

    def test_file_handler_added(self, tmp_path):
        log_file = tmp_path / "logs" / "failover.log"

        setup_logging(make_config(log_file=str(log_file), log_max_size_mb=1, log_backup_count=2))

        handlers = [h for h in logging.getLogger().handlers
                    if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].maxBytes == 1024 * 1024
        assert handlers[0].backupCount == 2
        assert log_file.parent.exists()

    @pytest.mark.parametrize("log_format", ["json", "text"])
    def test_logger_usable_after_setup(self, log_format):
        setup_logging(make_config(log_format=log_format, log_level="DEBUG"))

        logger = get_logger("producer_failover.test").bind(component="test")
        logger.info("Logging configured", log_format=log_format)

    def test_root_level_follows_config(self):
        setup_logging(make_config(log_level="WARNING"))

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_urllib3_kept_quiet_at_debug(self):
        setup_logging(make_config(log_level="DEBUG"))

        assert logging.getLogger("urllib3").level == logging.INFO


class TestProducerContext:

    def test_adds_producer_and_chain(self):
        processor = producer_context("mybpaccount1", "wax")

        event = processor(None, "info", {"event": "Producer missed a round"})

        assert event["producer"] == "mybpaccount1"
        assert event["chain"] == "wax"

    def test_bound_values_win(self):
        processor = producer_context("mybpaccount1", "wax")

        event = processor(None, "info", {"event": "x", "producer": "otherbp11111"})

        assert event["producer"] == "otherbp11111"
