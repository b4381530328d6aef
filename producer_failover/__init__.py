"""
Block Producer Failover Monitor

Watches an EOSIO block producer's unpaid block count and rotates its signing
key to a backup node, or unregisters it, when it stops producing.
"""

__version__ = "1.0.0"
__description__ = "Missed-round detection and signing key failover for EOSIO block producers"

from producer_failover.core.poller import FailoverPoller
from producer_failover.core.gateway import EosioChainGateway
from producer_failover.models.config import FailoverConfig

__all__ = [
    "FailoverPoller",
    "EosioChainGateway",
    "FailoverConfig",
]
