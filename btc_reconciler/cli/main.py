"""Command-line interface for the transfer reconciler."""

import sys
from typing import Optional
import click
import structlog

from btc_reconciler.models.config import ReconcilerConfig
from btc_reconciler.models.blockchain import Address, ReconciledTransfer
from btc_reconciler.core.rpc_client import BitcoinRPCClient
from btc_reconciler.core.reconciler import TransactionReconciler
from btc_reconciler.core.report import ReportWriter
from btc_reconciler.core.workflow import TransferWorkflow
from btc_reconciler.utils.logging import setup_logging

logger = structlog.get_logger(__name__)


def _echo_transfer(transfer: ReconciledTransfer) -> None:
    click.echo("📄 Reconciled transfer")
    click.echo("=" * 40)
    click.echo(f"Transaction ID:   {transfer.txid}")
    click.echo(f"Funding input:    {transfer.funding_address} ({transfer.funding_amount})")
    click.echo(f"Recipient output: {transfer.recipient_address or '-'} ({transfer.recipient_amount})")
    click.echo(f"Change output:    {transfer.change_address or '-'} ({transfer.change_amount})")
    click.echo(f"Fee:              {transfer.fee} ({transfer.fee.sats} sat)")
    click.echo(f"Confirmed in:     {transfer.block_height} {transfer.block_hash}")


@click.group()
@click.option('--config-file', '-c', type=click.Path(exists=True),
              help='Path to an env file with settings')
@click.option('--log-level', '-l', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.pass_context
def cli(ctx, config_file: Optional[str], log_level: str):
    """Regtest transfer reconciler CLI."""
    ctx.ensure_object(dict)

    # Load configuration
    try:
        if config_file:
            config = ReconcilerConfig(_env_file=config_file)
        else:
            config = ReconcilerConfig()

        config.log_level = log_level
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(config)
    ctx.obj['config'] = config


@cli.command()
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Report path (default: output_path setting)')
@click.pass_context
def run(ctx, output: Optional[str]):
    """Fund Miner, pay Trader, confirm and write the reconciled report."""
    config = ctx.obj['config']

    try:
        workflow = TransferWorkflow(config)
        transfer = workflow.run(output_path=output)
    except Exception as e:
        logger.error("Workflow failed", error=str(e))
        click.echo(f"❌ Workflow failed: {e}", err=True)
        sys.exit(1)

    _echo_transfer(transfer)
    click.echo(f"✅ Transaction details written to {output or config.output_path}")


@cli.command()
@click.argument('txid')
@click.argument('block_hash')
@click.option('--destination', '-d', required=True,
              help='Address the payment was sent to')
@click.option('--output', '-o', type=click.Path(dir_okay=False), default=None,
              help='Report path (default: output_path setting)')
@click.pass_context
def reconcile(ctx, txid: str, block_hash: str, destination: str, output: Optional[str]):
    """Reconcile a transfer already confirmed in BLOCK_HASH."""
    config = ctx.obj['config']

    rpc_client = BitcoinRPCClient(config)
    try:
        address = Address.require_network(destination, config.network)
        transfer = TransactionReconciler(rpc_client, config.network).reconcile(txid, block_hash, address)
        ReportWriter(output or config.output_path).write(transfer)
    except Exception as e:
        click.echo(f"❌ Reconciliation failed: {e}", err=True)
        sys.exit(1)
    finally:
        rpc_client.close()

    _echo_transfer(transfer)


@cli.command()
@click.pass_context
def test_connection(ctx):
    """Test the connection to Bitcoin Core."""
    config = ctx.obj['config']

    rpc_client = BitcoinRPCClient(config)
    click.echo("🔍 Testing Bitcoin Core RPC connection...")
    try:
        ok = rpc_client.test_connection()
    finally:
        rpc_client.close()

    if ok:
        click.echo("✅ Bitcoin Core RPC connection successful")
    else:
        click.echo("❌ Bitcoin Core RPC connection failed", err=True)
        sys.exit(1)


@cli.command()
def version():
    """Show version information."""
    from btc_reconciler import __version__, __description__

    click.echo(f"Regtest Transfer Reconciler v{__version__}")
    click.echo(__description__)


if __name__ == '__main__':
    cli()
