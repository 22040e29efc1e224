"""Transaction and block parsing into domain records."""

from decimal import Decimal
from typing import Dict, Any, Optional
import structlog

from btc_reconciler.models.blockchain import (
    Address, Amount, BlockRecord, TransactionRecord, TxInput, TxOutput
)

logger = structlog.get_logger(__name__)


def parse_vin(vin_data: Dict[str, Any]) -> TxInput:
    """Parse transaction input data."""
    if 'coinbase' in vin_data:
        return TxInput(txid=None, vout=None, is_coinbase=True)

    return TxInput(
        txid=vin_data.get('txid'),
        vout=vin_data.get('vout'),
        is_coinbase=False
    )


def output_address(script_pub_key: Dict[str, Any]) -> Optional[str]:
    """Resolved address of an output script, if the node reported one."""
    # Core >= 22 reports a single "address"; older nodes an "addresses" list
    address = script_pub_key.get('address')
    if address:
        return address

    addresses = script_pub_key.get('addresses') or []
    return addresses[0] if addresses else None


class TransactionParser:
    """Parse verbose getrawtransaction/getblock replies."""

    def __init__(self, network: str):
        self.network = network
        self.logger = logger.bind(component="transaction_parser")

    def parse_vout(self, vout_data: Dict[str, Any], index: int) -> TxOutput:
        """Parse transaction output data; the address is validated for the network."""
        value = vout_data.get('value', 0)
        if isinstance(value, float):
            value = Decimal(str(value))

        script_pub_key = vout_data.get('scriptPubKey', {})
        raw_address = output_address(script_pub_key)

        return TxOutput(
            index=vout_data.get('n', index),
            amount=Amount.from_btc(value),
            address=Address.require_network(raw_address, self.network) if raw_address else None
        )

    def parse_transaction(self, tx_data: Dict[str, Any]) -> TransactionRecord:
        """Parse a decoded transaction."""
        record = TransactionRecord(
            txid=tx_data['txid'],
            inputs=[parse_vin(vin) for vin in tx_data.get('vin', [])],
            outputs=[
                self.parse_vout(vout, index)
                for index, vout in enumerate(tx_data.get('vout', []))
            ],
            block_hash=tx_data.get('blockhash')
        )

        self.logger.debug("Parsed transaction",
                          txid=record.txid,
                          inputs=len(record.inputs),
                          outputs=len(record.outputs))
        return record

    def parse_block(self, block_data: Dict[str, Any]) -> BlockRecord:
        """Parse a getblock reply (verbosity 1 or 2)."""
        txids = [
            tx['txid'] if isinstance(tx, dict) else tx
            for tx in block_data.get('tx', [])
        ]
        return BlockRecord(
            block_hash=block_data['hash'],
            height=block_data['height'],
            txids=txids
        )
