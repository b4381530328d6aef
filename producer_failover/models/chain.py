"""Chain data models consumed by the failover core."""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any


SCHEDULE_SLOTS = ("active", "pending", "proposed")


@dataclass
class ChainSnapshot:
    """Head of the chain at the time of a poll."""
    head_block_num: int
    head_block_producer: str


@dataclass
class ActiveProducerRecord:
    """Row of the producers table."""
    owner: str
    unpaid_blocks: int
    producer_key: Optional[str] = None
    is_active: bool = True
    url: Optional[str] = None
    location: Optional[int] = None


@dataclass
class ScheduleEntry:
    """One producer slot within a schedule."""
    producer_name: str
    block_signing_key: str


@dataclass
class ScheduleSnapshot:
    """
    Producer schedule at each stage of propagation.

    A signing key change moves proposed -> pending -> active. Stages with no
    schedule are empty lists.
    """
    active: List[ScheduleEntry] = field(default_factory=list)
    pending: List[ScheduleEntry] = field(default_factory=list)
    proposed: List[ScheduleEntry] = field(default_factory=list)

    def slot(self, name: str) -> List[ScheduleEntry]:
        """Entries of a named slot."""
        if name not in SCHEDULE_SLOTS:
            raise ValueError(f"Unknown schedule slot: {name}")
        return getattr(self, name)

    def find(self, name: str, producer_name: str) -> Optional[ScheduleEntry]:
        """First entry for a producer in a slot, or None."""
        for entry in self.slot(name):
            if entry.producer_name == producer_name:
                return entry
        return None


def parse_schedule_entry(raw: Dict[str, Any]) -> ScheduleEntry:
    """
    Build a schedule entry from a get_producer_schedule row.

    Legacy rows carry ``block_signing_key``; rows using weighted-threshold
    signing authorities carry ``authority: [type, {"keys": [...]}]`` and the
    first key is taken.
    """
    key = raw.get("block_signing_key")
    if not key:
        authority = raw.get("authority") or []
        if len(authority) == 2 and isinstance(authority[1], dict):
            keys = authority[1].get("keys") or []
            if keys:
                key = keys[0].get("key")
    if not key:
        raise ValueError(f"Schedule entry without a signing key: {raw}")
    return ScheduleEntry(producer_name=raw["producer_name"], block_signing_key=key)


def parse_schedule(raw: Dict[str, Any]) -> ScheduleSnapshot:
    """Build a schedule snapshot from a get_producer_schedule response."""
    slots = {}
    for name in SCHEDULE_SLOTS:
        section = raw.get(name) or {}
        producers = section.get("producers") or []
        slots[name] = [parse_schedule_entry(row) for row in producers]
    return ScheduleSnapshot(**slots)


def parse_producer_row(raw: Dict[str, Any]) -> ActiveProducerRecord:
    """Build a producer record from a get_producers row."""
    location = raw.get("location")
    return ActiveProducerRecord(
        owner=raw["owner"],
        unpaid_blocks=int(raw.get("unpaid_blocks", 0)),
        producer_key=raw.get("producer_key"),
        is_active=bool(raw.get("is_active", 1)),
        url=raw.get("url"),
        location=int(location) if location is not None else None,
    )
