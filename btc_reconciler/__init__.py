"""
Regtest Transfer Reconciler

Drives a Bitcoin Core regtest node through wallet provisioning, mining,
a Miner -> Trader payment and its confirmation, then reconstructs the
payment's inputs, outputs and fee purely from RPC data.
"""

__version__ = "1.0.0"
__author__ = "Bitcoin Data Engineering Team"
__description__ = "Fund, pay and reconcile a transfer on a Bitcoin Core regtest node"

from btc_reconciler.core.reconciler import TransactionReconciler
from btc_reconciler.core.rpc_client import BitcoinRPCClient
from btc_reconciler.core.workflow import TransferWorkflow
from btc_reconciler.models.config import ReconcilerConfig

__all__ = [
    "TransactionReconciler",
    "BitcoinRPCClient",
    "TransferWorkflow",
    "ReconcilerConfig",
]
