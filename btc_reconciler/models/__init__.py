"""Data models and configuration."""

from btc_reconciler.models.config import ReconcilerConfig
from btc_reconciler.models.blockchain import (
    Address, Amount, BlockRecord, ReconciledTransfer, TransactionRecord, TxInput, TxOutput, WalletHandle
)

__all__ = [
    "ReconcilerConfig",
    "Address",
    "Amount",
    "BlockRecord",
    "ReconciledTransfer",
    "TransactionRecord",
    "TxInput",
    "TxOutput",
    "WalletHandle",
]
