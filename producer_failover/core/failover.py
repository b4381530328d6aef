"""Backup signing key rotation and producer deregistration."""

from typing import Iterable, List, Optional
import structlog

from producer_failover.core.gateway import ChainGateway
from producer_failover.utils.alerts import AlertSink

logger = structlog.get_logger(__name__)


class DeregistrationError(Exception):
    """unregprod could not be submitted."""
    pass


class BackupKeyQueue:
    """Ordered backup signing keys; the front key is the next failover target."""

    def __init__(self, keys: Iterable[str] = ()):
        self._keys: List[str] = list(keys)

    def __contains__(self, key: str) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __repr__(self) -> str:
        return f"BackupKeyQueue({self._keys!r})"

    @property
    def keys(self) -> List[str]:
        return list(self._keys)

    def remove(self, key: str) -> bool:
        """Drop every occurrence of a key; True if anything was removed."""
        before = len(self._keys)
        self._keys = [k for k in self._keys if k != key]
        return len(self._keys) != before

    def pop(self) -> str:
        """Take the next key off the front."""
        if not self._keys:
            raise IndexError("pop from empty BackupKeyQueue")
        return self._keys.pop(0)


class FailoverController:
    """
    Acts on a breached missed-round threshold.

    Each call consumes the next backup key with a regproducer. Once the queue
    is empty, or if the key change cannot be submitted, the producer is
    unregistered instead. Once an unregprod succeeds with the queue empty,
    further calls are no-ops until ``clear_deregistered`` is called or a
    regproducer re-registers the producer.
    """

    def __init__(self, gateway: ChainGateway, keys: BackupKeyQueue, alerts: AlertSink,
                 account: str, permission: str, location: int, website: str):
        self.gateway = gateway
        self.keys = keys
        self.alerts = alerts
        self.account = account
        self.permission = permission
        self.location = location
        self.website = website
        self.deregistered = False
        self.logger = logger.bind(component="failover_controller", producer=account)

    def clear_deregistered(self) -> None:
        if self.deregistered:
            self.logger.info("Producer is producing again, re-arming deregistration")
        self.deregistered = False

    def execute(self) -> Optional[str]:
        """Fail over to the next key or deregister; returns the transaction id."""
        if self.deregistered and not self.keys:
            self.logger.info("Producer already unregistered, not resubmitting unregprod")
            return None

        if not self.keys:
            txid = self._deregister()
            self.logger.info("unregprod submitted", txid=txid)
            self.alerts.notify(f"⚠️ producer has no backup nodes available, unregprod submitted ({txid})")
            return txid

        next_signing_key = self.keys.pop()
        try:
            txid = self.gateway.submit_key_change(
                self.account,
                self.permission,
                self.location,
                self.website,
                next_signing_key,
            )
        except Exception as e:
            self.logger.error("Failed to submit regproducer", next_signing_key=next_signing_key, error=str(e))
            txid = self._deregister()
            self.logger.info("Failure to rotate, new unregprod submitted", txid=txid)
            self.alerts.notify(f"⚠️ failure to rotate/unregprod, unregprod submitted ({txid})")
            return txid

        self.deregistered = False
        remaining = self.keys.keys
        self.logger.info("regproducer submitted to failover to next available node",
                         txid=txid,
                         next_signing_key=next_signing_key,
                         remaining_keys=remaining)
        self.alerts.notify(
            f"⚠️ regproducer submitted with new signing key of {next_signing_key}, "
            f"{remaining} keys remaining in rotation ({txid})"
        )
        return txid

    def _deregister(self) -> str:
        try:
            txid = self.gateway.submit_deregister(self.account, self.permission)
        except Exception as e:
            self.logger.error("Failed to submit unregprod", error=str(e))
            self.alerts.notify(f"🚨 unable to submit unregprod: {e}")
            raise DeregistrationError(str(e)) from e
        self.deregistered = True
        return txid
