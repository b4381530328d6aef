"""keosd wallet API client used to sign producer transactions."""

from typing import Dict, Any, List
import requests
import structlog

from producer_failover.models.config import FailoverConfig
from producer_failover.core.rpc_client import parse_api_error

logger = structlog.get_logger(__name__)

# keosd answers an unlock of an already unlocked wallet with this code
WALLET_ALREADY_UNLOCKED = 3120007


class WalletError(Exception):
    """keosd specific error."""
    pass


class KeosdWalletClient:
    """Signs transactions with keys held by a keosd wallet daemon."""

    def __init__(self, config: FailoverConfig):
        self.config = config
        self.session = requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        self.wallet_url = config.wallet_base_url

        logger.info("Wallet client initialized", wallet_url=self.wallet_url)

    def _make_request(self, path: str, payload: Any = None) -> Any:
        try:
            response = self.session.post(
                f"{self.wallet_url}{path}",
                json=payload,
                timeout=self.config.rpc_timeout
            )
        except requests.RequestException as e:
            raise WalletError(f"Wallet request to {path} failed: {e}") from e

        if response.status_code >= 400:
            error = parse_api_error(response)
            if error.code == WALLET_ALREADY_UNLOCKED and path == "/v1/wallet/unlock":
                return {}
            raise WalletError(str(error)) from error

        try:
            return response.json()
        except ValueError as e:
            raise WalletError(f"Invalid wallet response from {path}") from e

    def unlock(self) -> None:
        """Unlock the configured wallet; no-op without credentials."""
        if not (self.config.wallet_name and self.config.wallet_password):
            return
        self._make_request("/v1/wallet/unlock", [self.config.wallet_name, self.config.wallet_password])
        logger.debug("Wallet unlocked", wallet=self.config.wallet_name)

    def get_public_keys(self) -> List[str]:
        """Public keys of all unlocked wallets."""
        return self._make_request("/v1/wallet/get_public_keys")

    def sign_transaction(self, transaction: Dict[str, Any], public_keys: List[str],
                         chain_id: str) -> Dict[str, Any]:
        """Sign a transaction with the given keys; returns the signed transaction."""
        return self._make_request("/v1/wallet/sign_transaction", [transaction, public_keys, chain_id])

    def test_connection(self) -> bool:
        """Test wallet connection."""
        try:
            self.unlock()
            keys = self.get_public_keys()
            logger.info("Wallet connection successful", keys=len(keys))
            return True
        except WalletError as e:
            logger.error("Wallet connection failed", error=str(e))
            return False

    def close(self):
        """Close the HTTP session."""
        self.session.close()
