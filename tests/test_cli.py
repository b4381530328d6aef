"""Tests for the command-line interface."""

import json
import pytest
from unittest.mock import Mock, patch
from click.testing import CliRunner

from producer_failover import __version__
from producer_failover.cli.main import cli
from producer_failover.core.rpc_client import ChainRPCError

from conftest import PRODUCER, CURRENT_KEY, BACKUP_KEY_1, producer_rows, schedule_with


ENV = {
    "FAILOVER_API_URL": "http://nodeos.test:8888",
    "FAILOVER_PRODUCER_ACCOUNT": PRODUCER,
    "FAILOVER_PRODUCER_WEBSITE": "https://bp.example.com",
    "FAILOVER_PRODUCER_SIGNING_PUBKEYS": f'["{BACKUP_KEY_1}"]',
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("producer_failover.cli.main.setup_logging"):
        yield


@pytest.fixture
def gateway_cls(gateway):
    with patch("producer_failover.cli.main.EosioChainGateway", return_value=gateway) as cls:
        yield cls


class TestVersionCommand:

    def test_version(self, runner):
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert f"v{__version__}" in result.output

    def test_version_json(self, runner):
        result = runner.invoke(cli, ["version", "--json"])

        assert json.loads(result.output)["version"] == __version__


class TestCheckCommand:
    """Tests for the single-shot check command."""

    def test_check_initializes(self, runner, gateway_cls, gateway):
        result = runner.invoke(cli, ["check"], env=ENV)

        assert result.exit_code == 0, result.output
        assert "Status: classified" in result.output
        assert "Outcome: initializing" in result.output
        gateway.close.assert_called_once()

    def test_check_reports_fetch_failure(self, runner, gateway_cls, gateway):
        gateway.get_chain_state.side_effect = ChainRPCError("connection refused")

        result = runner.invoke(cli, ["check"], env=ENV)

        assert result.exit_code == 0
        assert "Status: fetch_failed" in result.output
        assert "connection refused" in result.output

    def test_invalid_configuration_exits(self, runner):
        env = dict(ENV, FAILOVER_PRODUCER_ACCOUNT="Not_A_Valid_Name")

        result = runner.invoke(cli, ["check"], env=env)

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestStatusCommand:

    def test_status_prints_producer(self, runner, gateway_cls, gateway):
        gateway.get_producer_schedule.return_value = schedule_with(pending_key=BACKUP_KEY_1)

        result = runner.invoke(cli, ["status"], env=ENV)

        assert result.exit_code == 0, result.output
        assert "Unpaid blocks: 100" in result.output
        assert f"Active schedule key: {CURRENT_KEY}" in result.output
        assert f"Pending schedule key: {BACKUP_KEY_1}" in result.output
        assert "Proposed schedule key: -" in result.output

    def test_status_producer_not_listed(self, runner, gateway_cls, gateway):
        gateway.get_active_producers.return_value = producer_rows(5, owner="otherbp22222")

        result = runner.invoke(cli, ["status"], env=ENV)

        assert result.exit_code == 0
        assert "is not among the top 21 producers" in result.output

    def test_status_chain_unreachable(self, runner, gateway_cls, gateway):
        gateway.get_chain_state.side_effect = ChainRPCError("refused")

        result = runner.invoke(cli, ["status"], env=ENV)

        assert result.exit_code == 1


class TestConnectionCommand:

    @pytest.mark.parametrize("chain_ok,wallet_ok,exit_code", [
        (True, True, 0),
        (False, True, 1),
        (True, False, 1),
    ])
    def test_connection_results(self, runner, gateway_cls, gateway, chain_ok, wallet_ok, exit_code):
        gateway.rpc = Mock()
        gateway.wallet = Mock()
        gateway.rpc.test_connection.return_value = chain_ok
        gateway.wallet.test_connection.return_value = wallet_ok

        result = runner.invoke(cli, ["test-connection"], env=ENV)

        assert result.exit_code == exit_code
