"""Data models and configuration."""

from producer_failover.models.config import FailoverConfig
from producer_failover.models.chain import (
    ChainSnapshot,
    ActiveProducerRecord,
    ScheduleEntry,
    ScheduleSnapshot,
)

__all__ = [
    "FailoverConfig",
    "ChainSnapshot",
    "ActiveProducerRecord",
    "ScheduleEntry",
    "ScheduleSnapshot",
]
