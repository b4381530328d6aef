"""Build, sign and push eosio system contract transactions."""

from datetime import datetime, timedelta
from typing import Dict, Any, List, Tuple
import structlog

from producer_failover.models.config import FailoverConfig
from producer_failover.core.rpc_client import EosioRPCClient, ChainRPCError
from producer_failover.core.wallet_client import KeosdWalletClient, WalletError

logger = structlog.get_logger(__name__)

SYSTEM_CONTRACT = "eosio"


class TransactionError(Exception):
    """Transaction could not be built, signed or accepted."""
    pass


class TransactionBuilder:
    """
    Submits single-action transactions against the system contract.

    The reference block sits ``tx_blocks_behind`` blocks behind head and the
    transaction expires ``tx_expire_seconds`` after that block's timestamp.
    Signing is delegated to keosd; nodeos picks the keys it needs.
    """

    def __init__(self, config: FailoverConfig, rpc: EosioRPCClient, wallet: KeosdWalletClient):
        self.config = config
        self.rpc = rpc
        self.wallet = wallet
        self.logger = logger.bind(component="transaction_builder")

    def _reference_block(self, info: Dict[str, Any]) -> Dict[str, Any]:
        block_num = max(info["head_block_num"] - self.config.tx_blocks_behind, 1)
        return self.rpc.get_block(block_num)

    def _expiration(self, block: Dict[str, Any]) -> str:
        block_time = datetime.fromisoformat(block["timestamp"])
        expiration = block_time + timedelta(seconds=self.config.tx_expire_seconds)
        return expiration.strftime("%Y-%m-%dT%H:%M:%S")

    def build(self, action: str, data: Dict[str, Any], actor: str,
              permission: str) -> Tuple[Dict[str, Any], str]:
        """Build an unsigned transaction; returns (transaction, chain_id)."""
        info = self.rpc.get_info()
        block = self._reference_block(info)
        binargs = self.rpc.abi_json_to_bin(SYSTEM_CONTRACT, action, data)

        transaction = {
            "expiration": self._expiration(block),
            "ref_block_num": block["block_num"] & 0xFFFF,
            "ref_block_prefix": block["ref_block_prefix"],
            "max_net_usage_words": 0,
            "max_cpu_usage_ms": 0,
            "delay_sec": 0,
            "context_free_actions": [],
            "actions": [{
                "account": SYSTEM_CONTRACT,
                "name": action,
                "authorization": [{"actor": actor, "permission": permission}],
                "data": binargs,
            }],
            "transaction_extensions": [],
        }
        return transaction, info["chain_id"]

    def _sign(self, transaction: Dict[str, Any], chain_id: str) -> Dict[str, Any]:
        self.wallet.unlock()
        available: List[str] = self.wallet.get_public_keys()
        required = self.rpc.get_required_keys(transaction, available)
        if not required:
            raise TransactionError("Wallet holds none of the keys required to authorize the transaction")
        return self.wallet.sign_transaction(transaction, required, chain_id)

    def transact(self, action: str, data: Dict[str, Any], actor: str, permission: str) -> str:
        """Build, sign and push one action; returns the transaction id."""
        try:
            transaction, chain_id = self.build(action, data, actor, permission)
            signed = self._sign(transaction, chain_id)
            result = self.rpc.push_transaction(signed)
        except (ChainRPCError, WalletError, KeyError) as e:
            raise TransactionError(f"{action} failed: {e}") from e

        txid = result.get("transaction_id")
        if not txid:
            raise TransactionError(f"{action} returned no transaction id")

        self.logger.info("Transaction pushed", action=action, txid=txid)
        return txid
