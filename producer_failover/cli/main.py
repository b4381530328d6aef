"""Command-line interface for the producer failover monitor."""

import sys
import json
from typing import Optional
import click
from pydantic import ValidationError

from producer_failover.models.config import FailoverConfig
from producer_failover.core.gateway import EosioChainGateway
from producer_failover.core.poller import FailoverPoller
from producer_failover.core.rpc_client import ChainRPCError
from producer_failover.utils.alerts import build_alert_sink
from producer_failover.utils.logging import setup_logging, get_logger

logger = get_logger(__name__)


def load_config(config_file: Optional[str], log_level: Optional[str]) -> FailoverConfig:
    """Read configuration once at startup; exits non-zero when invalid."""
    try:
        if config_file:
            config = FailoverConfig(_env_file=config_file)
        else:
            config = FailoverConfig()
    except ValidationError as e:
        logger.critical("Invalid configuration", errors=e.error_count())
        click.echo(f"Invalid configuration:\n{e}", err=True)
        sys.exit(1)

    if log_level:
        config.log_level = log_level

    setup_logging(config)
    return config


@click.group()
@click.option('--config-file', '-c', type=click.Path(exists=True),
              help='Path to .env configuration file')
@click.option('--log-level', '-l', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.pass_context
def cli(ctx, config_file: Optional[str], log_level: Optional[str]):
    """Block producer missed-round monitor with automatic failover."""
    ctx.ensure_object(dict)
    ctx.obj['config_file'] = config_file
    ctx.obj['log_level'] = log_level


def _config(ctx) -> FailoverConfig:
    if 'config' not in ctx.obj:
        ctx.obj['config'] = load_config(ctx.obj['config_file'], ctx.obj['log_level'])
    return ctx.obj['config']


@cli.command()
@click.pass_context
def run(ctx):
    """Monitor the producer until stopped."""
    config = _config(ctx)

    try:
        gateway = EosioChainGateway(config)
        alerts = build_alert_sink(config)
        poller = FailoverPoller(config, gateway, alerts)
        poller.install_signal_handlers()

        alerts.notify(
            f"✅ failover monitor started for {config.producer_account}, "
            f"checking every {config.round_timer}s with {len(poller.keys)} backup keys"
        )
        poller.start()
        gateway.close()

    except Exception as e:
        logger.critical("Unable to start application", error=str(e), exc_info=True)
        click.echo(f"❌ Failover monitor failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def check(ctx):
    """Run a single check and print its result."""
    config = _config(ctx)

    try:
        gateway = EosioChainGateway(config)
        poller = FailoverPoller(config, gateway, build_alert_sink(config))
        result = poller.run_tick()
        gateway.close()
    except Exception as e:
        click.echo(f"❌ Check failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"Status: {result.status.value}")
    if result.outcome:
        click.echo(f"Outcome: {result.outcome.kind.value} (delta {result.outcome.delta})")
    if result.txid:
        click.echo(f"Transaction: {result.txid}")
    if result.error:
        click.echo(f"Error: {result.error}")


@cli.command()
@click.pass_context
def status(ctx):
    """Show configuration and the producer's on-chain record."""
    config = _config(ctx)

    click.echo("⚙️  Configuration")
    click.echo("=" * 40)
    for key, value in config.summary().items():
        click.echo(f"{key}: {value}")

    try:
        gateway = EosioChainGateway(config)
        chain = gateway.get_chain_state()
        producers = gateway.get_active_producers(config.total_producers)
        schedule = gateway.get_producer_schedule()
        gateway.close()
    except ChainRPCError as e:
        click.echo(f"❌ Failed to read chain: {e}", err=True)
        sys.exit(1)

    click.echo("\n📊 Chain")
    click.echo("=" * 40)
    click.echo(f"Head block: {chain.head_block_num:,} by {chain.head_block_producer}")

    producer = next((p for p in producers if p.owner == config.producer_account), None)
    if producer is None:
        click.echo(f"{config.producer_account} is not among the top {config.total_producers} producers")
        return

    click.echo(f"Unpaid blocks: {producer.unpaid_blocks:,}")
    click.echo(f"Registered key: {producer.producer_key}")
    click.echo(f"Is active: {'Yes' if producer.is_active else 'No'}")
    for slot in ("active", "pending", "proposed"):
        entry = schedule.find(slot, config.producer_account)
        click.echo(f"{slot.capitalize()} schedule key: {entry.block_signing_key if entry else '-'}")


@cli.command()
@click.pass_context
def test_connection(ctx):
    """Test connections to nodeos and keosd."""
    config = _config(ctx)
    gateway = EosioChainGateway(config)

    click.echo("🔍 Testing chain API connection...")
    chain_ok = gateway.rpc.test_connection()
    click.echo("✅ Chain API connection successful" if chain_ok else "❌ Chain API connection failed")

    click.echo("🔍 Testing wallet connection...")
    wallet_ok = gateway.wallet.test_connection()
    click.echo("✅ Wallet connection successful" if wallet_ok else "❌ Wallet connection failed")

    gateway.close()
    if not (chain_ok and wallet_ok):
        sys.exit(1)


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Print version information as JSON')
@click.pass_context
def version(ctx, as_json: bool):
    """Show version information."""
    from producer_failover import __version__, __description__

    if as_json:
        click.echo(json.dumps({"version": __version__, "description": __description__}))
        return

    click.echo(f"Producer Failover Monitor v{__version__}")
    click.echo(__description__)


def main():
    """Console entry point."""
    try:
        cli()
    except Exception as e:
        logger.critical("Uncaught exception", error=str(e), exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
