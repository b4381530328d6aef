"""
Fixed-interval driver for the failover core.

Each tick reads the chain, gates on in-flight schedule changes, classifies
the round and fails over once the missed-round threshold is reached. Ticks run
one at a time on a single thread.
"""

import math
import signal
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import schedule
import structlog

from producer_failover.models.config import FailoverConfig
from producer_failover.core.gateway import ChainGateway
from producer_failover.core.round_monitor import RoundMonitor, MonitorState, RoundOutcome, OutcomeKind
from producer_failover.core.schedule_guard import ScheduleGuard
from producer_failover.core.failover import FailoverController, BackupKeyQueue, DeregistrationError
from producer_failover.utils.alerts import AlertSink

logger = structlog.get_logger(__name__)


def is_perfect_square(num: int) -> bool:
    """True for 0, 1, 4, 9, 16, ..."""
    if num < 0:
        return False
    root = math.isqrt(num)
    return root * root == num


@dataclass
class FailureState:
    """Consecutive chain read failures, used to thin out alerts."""
    consecutive_failures: int = 0

    def record_failure(self) -> bool:
        """Count a failure; True when this one should be alerted."""
        self.consecutive_failures += 1
        return is_perfect_square(self.consecutive_failures)

    def reset(self) -> int:
        previous = self.consecutive_failures
        self.consecutive_failures = 0
        return previous


class TickStatus(str, Enum):
    FETCH_FAILED = "fetch_failed"
    SKIPPED = "skipped"
    KEY_CHANGE_PENDING = "key_change_pending"
    CLASSIFIED = "classified"
    FAILOVER = "failover"
    ERROR = "error"
    OVERLAP = "overlap"


@dataclass
class TickResult:
    status: TickStatus
    outcome: Optional[RoundOutcome] = None
    txid: Optional[str] = None
    error: Optional[str] = None


class FailoverPoller:
    """Owns the cross-poll state and runs the check on a fixed interval."""

    def __init__(self, config: FailoverConfig, gateway: ChainGateway, alerts: AlertSink,
                 state: Optional[MonitorState] = None,
                 failures: Optional[FailureState] = None,
                 keys: Optional[BackupKeyQueue] = None):
        self.config = config
        self.gateway = gateway
        self.alerts = alerts
        self.logger = logger.bind(component="poller", producer=config.producer_account)

        self.state = state or MonitorState()
        self.failures = failures or FailureState()
        self.keys = keys if keys is not None else BackupKeyQueue(config.producer_signing_pubkeys)

        self.monitor = RoundMonitor(self.state, alerts, config.rounds_missed_threshold)
        self.guard = ScheduleGuard(config.producer_account, self.keys)
        self.failover = FailoverController(
            gateway,
            self.keys,
            alerts,
            account=config.producer_account,
            permission=config.producer_permission,
            location=config.producer_location,
            website=config.producer_website,
        )

        self.scheduler = schedule.Scheduler()
        self.running = False
        self._tick_lock = threading.Lock()

        # Stats
        self.ticks = 0
        self.errors = 0
        self.last_tick: Optional[datetime] = None

        self.logger.info("FailoverPoller initialized",
                         interval=config.round_timer,
                         threshold=config.rounds_missed_threshold,
                         backup_keys=len(self.keys))

    def run_tick(self) -> TickResult:
        """Run one check unless another one is still in progress."""
        if not self._tick_lock.acquire(blocking=False):
            self.logger.warning("Previous check still running, skipping trigger")
            return TickResult(TickStatus.OVERLAP)

        try:
            result = self._tick()
        except DeregistrationError as e:
            # already alerted by the controller; the next tick retries
            self.errors += 1
            self.logger.error("Deregistration failed", error=str(e))
            result = TickResult(TickStatus.ERROR, error=str(e))
        except Exception as e:
            self.errors += 1
            self.logger.exception("Check failed", error=str(e))
            self.alerts.notify(f"❌ failover check failed: {e}")
            result = TickResult(TickStatus.ERROR, error=str(e))
        finally:
            self.ticks += 1
            self.last_tick = datetime.now(timezone.utc)
            self._tick_lock.release()

        return result

    def _fetch_failed(self, what: str, path: str, error: Exception) -> TickResult:
        if self.failures.record_failure():
            failures = self.failures.consecutive_failures
            url = self.gateway.endpoint(path)
            self.logger.warning(f"Unable to retrieve {what}", stuck_counter=failures, url=url, error=str(error))
            self.alerts.notify(
                f"⚠️ Unable to retrieve {what} ({failures} consecutive failures, "
                f"~{failures * self.config.round_timer}s) - {url} - {error}"
            )
        else:
            self.logger.debug(f"Unable to retrieve {what}",
                              stuck_counter=self.failures.consecutive_failures,
                              error=str(error))
        return TickResult(TickStatus.FETCH_FAILED, error=str(error))

    def _tick(self) -> TickResult:
        account = self.config.producer_account

        # Retrieve the current state of the blockchain
        try:
            self.gateway.get_chain_state()
        except Exception as e:
            return self._fetch_failed("chain state", "/v1/chain/get_info", e)

        try:
            producers = self.gateway.get_active_producers(self.config.total_producers)
        except Exception as e:
            return self._fetch_failed("active producers", "/v1/chain/get_producers", e)

        try:
            producer_schedule = self.gateway.get_producer_schedule()
        except Exception as e:
            return self._fetch_failed("producer schedule", "/v1/chain/get_producer_schedule", e)

        previous_failures = self.failures.reset()
        if previous_failures:
            self.logger.info("Chain API reachable again", failures=previous_failures)

        producer = next((p for p in producers if p.owner == account), None)
        if producer is None:
            self.logger.debug("Producer not an active producer")
            return TickResult(TickStatus.SKIPPED)

        current_schedule = producer_schedule.find("active", account)
        if current_schedule is None:
            self.logger.debug("Producer not in schedule")
            return TickResult(TickStatus.SKIPPED)

        current_signing_key = current_schedule.block_signing_key
        self.guard.prune_current_key(current_signing_key)

        if (self.guard.has_incoming_key_change(current_signing_key, producer_schedule, "proposed")
                or self.guard.has_incoming_key_change(current_signing_key, producer_schedule, "pending")):
            # re-baseline once the rotation lands so its delay is not counted as a miss
            self.monitor.reset_baseline()
            self.alerts.notify("🕒 signing key changes pending in schedule")
            return TickResult(TickStatus.KEY_CHANGE_PENDING)

        outcome = self.monitor.classify(producer.unpaid_blocks)

        if outcome.kind == OutcomeKind.PROGRESS:
            self.failover.clear_deregistered()

        if outcome.kind != OutcomeKind.MISSED or not self.monitor.threshold_exceeded:
            return TickResult(TickStatus.CLASSIFIED, outcome=outcome)

        rounds_missed = self.state.rounds_missed
        threshold = self.config.rounds_missed_threshold
        self.logger.debug("Producer has exceeded missed round threshold, executing failover",
                          rounds_missed=rounds_missed,
                          rounds_missed_threshold=threshold)
        self.alerts.notify(f"⚠️ producer exceeded missed round threshold {rounds_missed}/{threshold}")

        txid = self.failover.execute()
        return TickResult(TickStatus.FAILOVER, outcome=outcome, txid=txid)

    def _shutdown_handler(self, signum, frame):
        """Handle shutdown signals."""
        self.logger.info("Shutdown signal received", signal=signum)
        self.running = False

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._shutdown_handler)
        signal.signal(signal.SIGTERM, self._shutdown_handler)

    def start(self) -> None:
        """Check immediately, then once per round until stopped."""
        self.logger.info("Starting failover poller", interval=self.config.round_timer)

        self.running = True
        self.scheduler.every(self.config.round_timer).seconds.do(self.run_tick)

        self.run_tick()

        while self.running:
            self.scheduler.run_pending()
            time.sleep(1)

        self.scheduler.clear()
        self.logger.info("Failover poller stopped", ticks=self.ticks, errors=self.errors)

    def stop(self) -> None:
        self.running = False

    def get_status(self) -> dict:
        """Get poller status."""
        return {
            "running": self.running,
            "interval_seconds": self.config.round_timer,
            "ticks": self.ticks,
            "errors": self.errors,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "last_unpaid_blocks": self.state.last_unpaid_blocks,
            "rounds_missed": self.state.rounds_missed,
            "consecutive_failures": self.failures.consecutive_failures,
            "backup_keys": self.keys.keys,
            "deregistered": self.failover.deregistered,
        }
