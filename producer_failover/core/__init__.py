"""Core failover components."""

from producer_failover.core.round_monitor import RoundMonitor, MonitorState, RoundOutcome, OutcomeKind
from producer_failover.core.schedule_guard import ScheduleGuard
from producer_failover.core.failover import FailoverController, BackupKeyQueue, DeregistrationError
from producer_failover.core.poller import FailoverPoller, FailureState, TickResult, TickStatus
from producer_failover.core.gateway import ChainGateway, EosioChainGateway
from producer_failover.core.rpc_client import EosioRPCClient, ChainRPCError
from producer_failover.core.wallet_client import KeosdWalletClient, WalletError
from producer_failover.core.transaction import TransactionBuilder, TransactionError

__all__ = [
    "RoundMonitor",
    "MonitorState",
    "RoundOutcome",
    "OutcomeKind",
    "ScheduleGuard",
    "FailoverController",
    "BackupKeyQueue",
    "DeregistrationError",
    "FailoverPoller",
    "FailureState",
    "TickResult",
    "TickStatus",
    "ChainGateway",
    "EosioChainGateway",
    "EosioRPCClient",
    "ChainRPCError",
    "KeosdWalletClient",
    "WalletError",
    "TransactionBuilder",
    "TransactionError",
]
