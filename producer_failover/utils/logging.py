"""Structured logging for the failover monitor."""

import sys
import logging
import logging.handlers
from pathlib import Path
import structlog
from structlog.stdlib import LoggerFactory

from producer_failover.models.config import FailoverConfig


def producer_context(producer: str, chain: str):
    """Processor stamping every event with the monitored producer and chain."""

    def processor(logger, method_name, event_dict):
        event_dict.setdefault("producer", producer)
        event_dict.setdefault("chain", chain)
        return event_dict

    return processor


def _file_handler(config: FailoverConfig, level: int) -> logging.Handler:
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=config.log_max_size_mb * 1024 * 1024,
        backupCount=config.log_backup_count
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter('%(message)s'))
    return handler


def setup_logging(config: FailoverConfig) -> None:
    """
    Route structlog through stdlib logging.

    Events go to stdout, and to a rotating file when ``log_file`` is set.
    ``log_format`` picks JSON lines or the console renderer.
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(level)
    # urllib3 logs every pooled connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        producer_context(config.producer_account, config.chain_label),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if config.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if config.log_file:
        logging.getLogger().addHandler(_file_handler(config, level))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
