"""Reconstruct the economics of a confirmed transfer from node data."""

from typing import Optional
import structlog

from btc_reconciler.core.gateway import LedgerGateway
from btc_reconciler.core.transaction_parser import TransactionParser
from btc_reconciler.models.blockchain import (
    Address, Amount, ReconciledTransfer, TransactionRecord, TxOutput
)

logger = structlog.get_logger(__name__)


class ReconciliationError(Exception):
    """Transaction does not have the shape a single-input transfer must have."""
    pass


class TransactionReconciler:
    """
    Reconcile a single-input transfer.

    The funding output is found by following the only input back to the
    output it spends. Outputs paying the destination are the recipient
    output; any other addressed output is change. Fee is funding minus
    recipient minus change, computed in satoshis.
    """

    def __init__(self, gateway: LedgerGateway, network: str = "regtest"):
        self.gateway = gateway
        self.network = network
        self.parser = TransactionParser(network)
        self.logger = logger.bind(component="transaction_reconciler")

    def reconcile(self, txid: str, confirming_block_hash: str,
                  destination: Address) -> ReconciledTransfer:
        """
        Build the ReconciledTransfer for ``txid`` confirmed in
        ``confirming_block_hash``.

        Raises:
            ReconciliationError: the transaction is not a confirmed
                single-input transfer or references a missing output.
            BitcoinRPCError: the transaction or block cannot be fetched.
            AddressValidationError: an address belongs to another network.
        """
        log = self.logger.bind(txid=txid, block_hash=confirming_block_hash)

        tx = self.parser.parse_transaction(
            self.gateway.get_raw_transaction(txid, block_hash=confirming_block_hash)
        )
        block = self.parser.parse_block(self.gateway.get_block(confirming_block_hash))

        if not block.contains(txid):
            raise ReconciliationError(
                f"Transaction {txid} is not included in block {confirming_block_hash}"
            )

        funding_output = self._funding_output(tx)
        if funding_output.address is None:
            raise ReconciliationError(
                f"Funding output {tx.inputs[0].txid}:{tx.inputs[0].vout} has no address"
            )

        recipient = self._recipient_output(tx, destination)
        change = self._change_output(tx, destination)

        recipient_amount = recipient.amount if recipient else Amount.ZERO
        change_amount = change.amount if change else Amount.ZERO

        fee_sats = funding_output.amount.sats - recipient_amount.sats - change_amount.sats
        if fee_sats < 0:
            raise ReconciliationError(
                f"Outputs of {txid} exceed its funding amount by {-fee_sats} sat"
            )

        transfer = ReconciledTransfer(
            txid=txid,
            funding_address=funding_output.address,
            funding_amount=funding_output.amount,
            recipient_address=recipient.address if recipient else None,
            recipient_amount=recipient_amount,
            change_address=change.address if change else None,
            change_amount=change_amount,
            fee=Amount.from_sat(fee_sats),
            block_height=block.height,
            block_hash=block.block_hash,
        )

        log.info("Transaction reconciled",
                 funding=transfer.funding_amount.display(),
                 recipient=transfer.recipient_amount.display(),
                 change=transfer.change_amount.display(),
                 fee=transfer.fee.display(),
                 block_height=transfer.block_height)
        return transfer

    def _funding_output(self, tx: TransactionRecord) -> TxOutput:
        if len(tx.inputs) != 1:
            raise ReconciliationError(
                f"Expected exactly one input in {tx.txid}, found {len(tx.inputs)}"
            )

        tx_input = tx.inputs[0]
        if tx_input.is_coinbase or tx_input.txid is None or tx_input.vout is None:
            raise ReconciliationError(f"Input of {tx.txid} does not spend a previous output")

        previous = self.parser.parse_transaction(self.gateway.get_raw_transaction(tx_input.txid))

        if not 0 <= tx_input.vout < len(previous.outputs):
            raise ReconciliationError(
                f"Output index {tx_input.vout} out of range for {tx_input.txid} "
                f"({len(previous.outputs)} outputs)"
            )
        return previous.outputs[tx_input.vout]

    @staticmethod
    def _recipient_output(tx: TransactionRecord, destination: Address) -> Optional[TxOutput]:
        recipient = None
        for output in tx.outputs:
            if output.address is not None and str(output.address) == str(destination):
                recipient = output
        return recipient

    def _change_output(self, tx: TransactionRecord, destination: Address) -> Optional[TxOutput]:
        candidates = [
            output for output in tx.outputs
            if output.address is not None and str(output.address) != str(destination)
        ]
        if len(candidates) > 1:
            self.logger.warning("Multiple change candidates, using the last one",
                                txid=tx.txid,
                                candidates=[str(output.address) for output in candidates])
        return candidates[-1] if candidates else None
