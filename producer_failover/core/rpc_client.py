"""EOSIO nodeos HTTP API client for chain state and transaction submission."""

import json
import time
from typing import Dict, Any, Optional, List
import requests
import structlog

from producer_failover.models.config import FailoverConfig

logger = structlog.get_logger(__name__)


class ChainRPCError(Exception):
    """nodeos API specific error."""

    def __init__(self, message: str, code: Optional[int] = None, name: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.name = name


def parse_api_error(response: requests.Response) -> ChainRPCError:
    """Turn a nodeos/keosd error body into an exception."""
    try:
        body = response.json()
    except ValueError:
        return ChainRPCError(f"HTTP {response.status_code}: {response.text[:200]}")

    error = body.get('error') or {}
    details = error.get('details') or []
    detail = details[0].get('message') if details else None
    message = detail or error.get('what') or body.get('message') or 'Unknown API error'
    return ChainRPCError(
        f"API Error {error.get('code', response.status_code)}: {message}",
        code=error.get('code'),
        name=error.get('name'),
    )


class EosioRPCClient:
    """nodeos chain API client with retry logic for read calls."""

    def __init__(self, config: FailoverConfig):
        self.config = config
        self.session = requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': 'producer-failover/1.0.0'
        })
        self.api_url = config.api_base_url

        logger.info("Chain RPC client initialized", api_url=self.api_url)

    def _post(self, path: str, payload: Any) -> Any:
        response = self.session.post(
            f"{self.api_url}{path}",
            json=payload,
            timeout=self.config.rpc_timeout
        )
        if response.status_code >= 400:
            raise parse_api_error(response)
        return response.json()

    def _make_request(self, path: str, payload: Any = None, attempts: Optional[int] = None) -> Any:
        """Make API request, retrying transport failures."""
        attempts = attempts or self.config.rpc_retry_attempts

        for attempt in range(attempts):
            try:
                return self._post(path, payload)

            except (requests.RequestException, json.JSONDecodeError) as e:
                logger.warning("Chain API request failed",
                               path=path,
                               attempt=attempt + 1,
                               error=str(e))

                if attempt == attempts - 1:
                    raise ChainRPCError(f"Request to {path} failed after {attempts} attempts: {e}") from e

                time.sleep(self.config.rpc_retry_delay)

        raise ChainRPCError("Unexpected error in chain API request")

    def endpoint(self, path: str) -> str:
        """Full URL of an API path, used in fetch failure alerts."""
        return f"{self.api_url}{path}"

    def get_info(self) -> Dict[str, Any]:
        """Get chain head information."""
        return self._make_request("/v1/chain/get_info")

    def get_producers(self, limit: int, lower_bound: str = "") -> Dict[str, Any]:
        """Get producer rows ordered by total votes."""
        return self._make_request("/v1/chain/get_producers", {
            "json": True,
            "lower_bound": lower_bound,
            "limit": limit,
        })

    def get_producer_schedule(self) -> Dict[str, Any]:
        """Get the active, pending and proposed producer schedules."""
        return self._make_request("/v1/chain/get_producer_schedule")

    def get_block(self, block_num_or_id: int | str) -> Dict[str, Any]:
        """Get a block by number or id."""
        return self._make_request("/v1/chain/get_block", {"block_num_or_id": block_num_or_id})

    def abi_json_to_bin(self, code: str, action: str, args: Dict[str, Any]) -> str:
        """Serialize action arguments with the contract ABI."""
        result = self._make_request("/v1/chain/abi_json_to_bin", {
            "code": code,
            "action": action,
            "args": args,
        })
        return result["binargs"]

    def get_required_keys(self, transaction: Dict[str, Any], available_keys: List[str]) -> List[str]:
        """Subset of available keys needed to authorize a transaction."""
        result = self._make_request("/v1/chain/get_required_keys", {
            "transaction": transaction,
            "available_keys": available_keys,
        })
        return result.get("required_keys", [])

    def push_transaction(self, signed_transaction: Dict[str, Any]) -> Dict[str, Any]:
        """
        Push a signed transaction.

        Submitted exactly once: a transport error here is ambiguous, so it is
        raised instead of retried.
        """
        payload = {
            "signatures": signed_transaction.get("signatures", []),
            "compression": "none",
            "packed_context_free_data": "",
            "transaction": signed_transaction,
        }
        return self._make_request("/v1/chain/push_transaction", payload, attempts=1)

    def test_connection(self) -> bool:
        """Test API connection."""
        try:
            info = self.get_info()
            logger.info("Chain API connection successful",
                        chain_id=info.get('chain_id'),
                        head_block_num=info.get('head_block_num'))
            return True
        except ChainRPCError as e:
            logger.error("Chain API connection failed", error=str(e))
            return False

    def close(self):
        """Close the HTTP session."""
        self.session.close()
        logger.info("Chain RPC client session closed")
