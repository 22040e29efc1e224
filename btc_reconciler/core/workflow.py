"""Fund, pay, confirm and reconcile: the end-to-end demonstration run."""

from pathlib import Path
from typing import Optional
import structlog

from btc_reconciler.core.funding import ensure_funds
from btc_reconciler.core.gateway import LedgerGateway
from btc_reconciler.core.reconciler import TransactionReconciler
from btc_reconciler.core.report import ReportWriter
from btc_reconciler.core.rpc_client import BitcoinRPCClient
from btc_reconciler.core.transfer import pay
from btc_reconciler.core.wallets import ensure_wallet
from btc_reconciler.models.blockchain import Address, Amount, ReconciledTransfer
from btc_reconciler.models.config import ReconcilerConfig

logger = structlog.get_logger(__name__)


class TransferWorkflow:
    """
    Sequential Miner -> Trader transfer against a regtest node.

    Each step needs the previous one to have completed; any exception
    aborts the run and nothing is written.
    """

    def __init__(self, config: ReconcilerConfig, gateway: Optional[LedgerGateway] = None):
        self.config = config
        self.gateway = gateway or BitcoinRPCClient(config)
        self.logger = logger.bind(component="transfer_workflow")

    def run(self, output_path: Optional[str] = None) -> ReconciledTransfer:
        config = self.config
        gateway = self.gateway

        info = gateway.get_blockchain_info()
        self.logger.info("Blockchain info", chain=info.get('chain'), blocks=info.get('blocks'))

        miner = ensure_wallet(gateway, config.miner_wallet_name)
        trader = ensure_wallet(gateway, config.trader_wallet_name)

        mining_address = Address.require_network(
            gateway.get_new_address(miner, config.mining_label), config.network
        )
        self.logger.info("Mining address", address=str(mining_address))

        balance = ensure_funds(gateway, miner, mining_address,
                               batch_size=config.mining_batch_size,
                               max_blocks=config.mining_max_blocks)
        self.logger.info("Final miner wallet balance", wallet=miner.name, balance=balance.display())

        trader_address = Address.require_network(
            gateway.get_new_address(trader, config.receive_label), config.network
        )
        self.logger.info("Trader receiving address", address=str(trader_address))

        txid = pay(gateway, miner, trader_address, Amount.from_btc(config.send_amount_btc))

        mempool_entry = gateway.get_mempool_entry(txid)
        self.logger.info("Mempool entry",
                         txid=txid,
                         vsize=mempool_entry.get('vsize'),
                         fees=mempool_entry.get('fees'))

        block_hashes = gateway.generate_to_address(config.confirmation_blocks, str(mining_address))
        confirming_block = block_hashes[0]
        self.logger.info("Transaction confirmed", txid=txid, block_hash=confirming_block)

        transfer = TransactionReconciler(gateway, config.network).reconcile(
            txid, confirming_block, trader_address
        )

        ReportWriter(Path(output_path or config.output_path)).write(transfer)
        return transfer
