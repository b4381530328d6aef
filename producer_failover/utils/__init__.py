"""Utility functions and helpers."""

from producer_failover.utils.logging import setup_logging, get_logger
from producer_failover.utils.alerts import (
    AlertSink,
    SlackWebhook,
    TelegramAlerter,
    CompositeAlertSink,
    NullAlertSink,
    build_alert_sink,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "AlertSink",
    "SlackWebhook",
    "TelegramAlerter",
    "CompositeAlertSink",
    "NullAlertSink",
    "build_alert_sink",
]
