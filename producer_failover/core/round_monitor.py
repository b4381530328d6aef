"""Missed-round detection from unpaid block counts."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
import structlog

from producer_failover.utils.alerts import AlertSink

logger = structlog.get_logger(__name__)


class OutcomeKind(str, Enum):
    """Classification of one poll."""
    INITIALIZING = "initializing"
    RESET = "reset"
    PROGRESS = "progress"
    MISSED = "missed"


@dataclass
class RoundOutcome:
    kind: OutcomeKind
    delta: int = 0


@dataclass
class MonitorState:
    """
    Cross-poll memory of the round monitor.

    ``last_unpaid_blocks`` is None until the first observation and after a
    baseline reset.
    """
    last_unpaid_blocks: Optional[int] = None
    rounds_missed: int = 0

    @property
    def initialized(self) -> bool:
        return self.last_unpaid_blocks is not None


class RoundMonitor:
    """
    Classifies each poll by comparing the producer's unpaid block count with
    the previous observation.

    A growing count means blocks were produced since the last poll; an
    unchanged count is a missed round; a shrinking count means rewards were
    claimed and the count restarted.
    """

    def __init__(self, state: MonitorState, alerts: AlertSink, threshold: int):
        self.state = state
        self.alerts = alerts
        self.threshold = threshold
        self.logger = logger.bind(component="round_monitor")

    def reset_baseline(self) -> None:
        """Forget the last observation so the next poll re-initializes."""
        self.state.last_unpaid_blocks = None

    def classify(self, unpaid_blocks: int) -> RoundOutcome:
        """Record an unpaid block observation and classify it."""
        state = self.state
        last_unpaid = state.last_unpaid_blocks
        self.logger.debug("Unpaid block states", unpaid_blocks=unpaid_blocks, last_unpaid=last_unpaid)

        if last_unpaid is None:
            self.logger.info("Initializing unpaid block count on first call", unpaid_blocks=unpaid_blocks)
            state.last_unpaid_blocks = unpaid_blocks
            return RoundOutcome(OutcomeKind.INITIALIZING)

        if unpaid_blocks < last_unpaid:
            self.logger.debug("Resetting unpaid blocks, encountered reward claim",
                              last_unpaid=last_unpaid,
                              unpaid_blocks=unpaid_blocks,
                              rounds_missed=state.rounds_missed)
            state.last_unpaid_blocks = unpaid_blocks
            state.rounds_missed = 0
            return RoundOutcome(OutcomeKind.RESET)

        if unpaid_blocks > last_unpaid:
            new_blocks = unpaid_blocks - last_unpaid
            self.logger.info(f"Round success, witnessed {new_blocks} new unpaid blocks",
                             last_unpaid=last_unpaid,
                             unpaid_blocks=unpaid_blocks)
            state.last_unpaid_blocks = unpaid_blocks

            if state.rounds_missed > 0:
                msg = (f"producer recovered after {state.rounds_missed} rounds, "
                       f"witnessed {new_blocks} new unpaid blocks")
                self.logger.info(msg, rounds_missed=state.rounds_missed)
                self.alerts.notify(msg)
                state.rounds_missed = 0

            return RoundOutcome(OutcomeKind.PROGRESS, delta=new_blocks)

        state.rounds_missed += 1
        self.logger.info("Producer missed a round",
                         last_unpaid=last_unpaid,
                         unpaid_blocks=unpaid_blocks,
                         rounds_missed=state.rounds_missed)
        self.alerts.notify(f"⚠️ producer missed a round {state.rounds_missed}/{self.threshold}")
        return RoundOutcome(OutcomeKind.MISSED)

    @property
    def threshold_exceeded(self) -> bool:
        return self.state.rounds_missed >= self.threshold
