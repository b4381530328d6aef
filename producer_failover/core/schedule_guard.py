"""Detection of signing key rotations already in flight on chain."""

import structlog

from producer_failover.models.chain import ScheduleSnapshot
from producer_failover.core.failover import BackupKeyQueue

logger = structlog.get_logger(__name__)


class ScheduleGuard:
    """
    Keeps failover from racing a schedule change.

    A new signing key travels proposed -> pending -> active before it takes
    effect. While the producer shows up in the proposed or pending schedule
    with a key other than its active one, missed rounds are not acted upon.
    Keys seen in any schedule are never used as failover targets.
    """

    def __init__(self, producer_account: str, keys: BackupKeyQueue):
        self.producer_account = producer_account
        self.keys = keys
        self.logger = logger.bind(component="schedule_guard", producer=producer_account)

    def prune_current_key(self, current_signing_key: str) -> None:
        """Never fail over to the key that is already active."""
        if self.keys.remove(current_signing_key):
            self.logger.debug("Removing current signing key from potential failover keys",
                              current_signing_key=current_signing_key,
                              remaining_keys=self.keys.keys)

    def has_incoming_key_change(self, current_signing_key: str, schedule: ScheduleSnapshot,
                                slot: str) -> bool:
        """True if the producer's entry in ``slot`` carries a different key."""
        entry = schedule.find(slot, self.producer_account)
        if entry is None:
            return False

        scheduled_key = entry.block_signing_key
        if self.keys.remove(scheduled_key):
            self.logger.debug(f"Removing {slot} producer key from potential failover keys",
                              scheduled_key=scheduled_key,
                              remaining_keys=self.keys.keys)

        if scheduled_key != current_signing_key:
            self.logger.debug(f"{slot} schedule change found, awaiting...",
                              scheduled_key=scheduled_key,
                              current_signing_key=current_signing_key)
            return True

        return False
