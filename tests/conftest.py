"""Pytest configuration and fixtures for failover tests."""

import pytest
from unittest.mock import Mock

from producer_failover.models.config import FailoverConfig
from producer_failover.models.chain import (
    ChainSnapshot,
    ActiveProducerRecord,
    ScheduleEntry,
    ScheduleSnapshot,
)


PRODUCER = "mybpaccount1"
CURRENT_KEY = "EOS6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV"
BACKUP_KEY_1 = "EOS5hyQs4EmQ4W9iUbyTZ1p1d6wPkdXJB2vtrNjDFBtyiHsWdp7Pe"
BACKUP_KEY_2 = "EOS7ijWCBmoXBi3CgtK7DJxentZZeTkeUnaSDvyro9dq7Sd1C3dC4"


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

def make_config(**overrides) -> FailoverConfig:
    """Build a config without reading the environment's .env file."""
    values = {
        "api_url": "http://nodeos.test:8888",
        "wallet_url": "http://keosd.test:6666",
        "producer_account": PRODUCER,
        "producer_permission": "active",
        "producer_website": "https://bp.example.com",
        "producer_location": 840,
        "producer_signing_pubkeys": [BACKUP_KEY_1, BACKUP_KEY_2],
        "rpc_retry_delay": 0,
    }
    values.update(overrides)
    return FailoverConfig(_env_file=None, **values)


@pytest.fixture
def config():
    """Default test configuration with two backup keys."""
    return make_config()


# ============================================================================
# COLLABORATOR FIXTURES
# ============================================================================

@pytest.fixture
def alerts():
    """Alert sink recording every notification."""
    sink = Mock()
    sink.notify = Mock()
    return sink


def producer_rows(unpaid_blocks: int, owner: str = PRODUCER):
    """Active producer list containing the monitored producer."""
    return [
        ActiveProducerRecord(owner="otherbp11111", unpaid_blocks=5000),
        ActiveProducerRecord(owner=owner, unpaid_blocks=unpaid_blocks, producer_key=CURRENT_KEY),
    ]


def schedule_with(active_key: str = CURRENT_KEY, pending_key: str = None,
                  proposed_key: str = None) -> ScheduleSnapshot:
    """Schedule snapshot with the monitored producer in the requested slots."""
    other = ScheduleEntry("otherbp11111", "EOS8Other1111111111111111111111111111111111111111111")
    snapshot = ScheduleSnapshot(active=[other, ScheduleEntry(PRODUCER, active_key)])
    if pending_key:
        snapshot.pending = [other, ScheduleEntry(PRODUCER, pending_key)]
    if proposed_key:
        snapshot.proposed = [ScheduleEntry(PRODUCER, proposed_key), other]
    return snapshot


@pytest.fixture
def gateway():
    """Chain gateway returning a healthy chain with the producer scheduled."""
    gw = Mock()
    gw.get_chain_state.return_value = ChainSnapshot(head_block_num=1000, head_block_producer="otherbp11111")
    gw.get_active_producers.return_value = producer_rows(100)
    gw.get_producer_schedule.return_value = schedule_with()
    gw.submit_key_change.return_value = "tx-regproducer"
    gw.submit_deregister.return_value = "tx-unregprod"
    gw.endpoint.side_effect = lambda path: f"http://nodeos.test:8888{path}"
    return gw


@pytest.fixture
def sample_schedule_response():
    """Raw get_producer_schedule response with a pending WTMsig schedule."""
    return {
        "active": {
            "version": 7,
            "producers": [
                {"producer_name": "otherbp11111", "block_signing_key": "EOS8Other1111111111111111111111111111111111111111111"},
                {"producer_name": PRODUCER, "block_signing_key": CURRENT_KEY},
            ],
        },
        "pending": {
            "version": 8,
            "producers": [
                {
                    "producer_name": PRODUCER,
                    "authority": [0, {"threshold": 1, "keys": [{"key": BACKUP_KEY_1, "weight": 1}]}],
                },
            ],
        },
        "proposed": None,
    }
