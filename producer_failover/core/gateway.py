"""Chain gateway: the reads and writes the failover core needs from the chain."""

from typing import List, Protocol
import structlog

from producer_failover.models.config import FailoverConfig
from producer_failover.models.chain import (
    ChainSnapshot,
    ActiveProducerRecord,
    ScheduleSnapshot,
    parse_producer_row,
    parse_schedule,
)
from producer_failover.core.rpc_client import EosioRPCClient, ChainRPCError
from producer_failover.core.wallet_client import KeosdWalletClient
from producer_failover.core.transaction import TransactionBuilder

logger = structlog.get_logger(__name__)


class ChainGateway(Protocol):
    """Narrow chain interface used by the poller and failover controller."""

    def get_chain_state(self) -> ChainSnapshot:
        ...

    def get_active_producers(self, limit: int) -> List[ActiveProducerRecord]:
        ...

    def get_producer_schedule(self) -> ScheduleSnapshot:
        ...

    def submit_key_change(self, account: str, permission: str, location: int,
                          website: str, new_key: str) -> str:
        ...

    def submit_deregister(self, account: str, permission: str) -> str:
        ...

    def endpoint(self, path: str) -> str:
        ...


class EosioChainGateway:
    """ChainGateway backed by nodeos for reads and keosd-signed transactions for writes."""

    def __init__(self, config: FailoverConfig, rpc: EosioRPCClient = None,
                 wallet: KeosdWalletClient = None):
        self.config = config
        self.rpc = rpc or EosioRPCClient(config)
        self.wallet = wallet or KeosdWalletClient(config)
        self.transactions = TransactionBuilder(config, self.rpc, self.wallet)

    def get_chain_state(self) -> ChainSnapshot:
        info = self.rpc.get_info()
        try:
            return ChainSnapshot(
                head_block_num=int(info["head_block_num"]),
                head_block_producer=info["head_block_producer"],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ChainRPCError(f"Malformed get_info response: {e}") from e

    def get_active_producers(self, limit: int) -> List[ActiveProducerRecord]:
        result = self.rpc.get_producers(limit)
        try:
            return [parse_producer_row(row) for row in result.get("rows", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise ChainRPCError(f"Malformed get_producers response: {e}") from e

    def get_producer_schedule(self) -> ScheduleSnapshot:
        result = self.rpc.get_producer_schedule()
        try:
            return parse_schedule(result)
        except (KeyError, TypeError, ValueError) as e:
            raise ChainRPCError(f"Malformed get_producer_schedule response: {e}") from e

    def submit_key_change(self, account: str, permission: str, location: int,
                          website: str, new_key: str) -> str:
        """Re-register the producer with a new signing key (regproducer)."""
        return self.transactions.transact("regproducer", {
            "producer": account,
            "producer_key": new_key,
            "url": website,
            "location": location,
        }, actor=account, permission=permission)

    def submit_deregister(self, account: str, permission: str) -> str:
        """Remove the producer from the candidate set (unregprod)."""
        return self.transactions.transact("unregprod", {
            "producer": account,
        }, actor=account, permission=permission)

    def endpoint(self, path: str) -> str:
        return self.rpc.endpoint(path)

    def close(self):
        self.rpc.close()
        self.wallet.close()
