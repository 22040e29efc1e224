"""Core workflow components."""

from btc_reconciler.core.rpc_client import BitcoinRPCClient, BitcoinRPCError
from btc_reconciler.core.funding import ensure_funds
from btc_reconciler.core.transfer import pay, send_payment, SendRequest, TransferError
from btc_reconciler.core.reconciler import TransactionReconciler, ReconciliationError
from btc_reconciler.core.report import ReportWriter
from btc_reconciler.core.wallets import ensure_wallet, WalletProvisioningError
from btc_reconciler.core.workflow import TransferWorkflow

__all__ = [
    "BitcoinRPCClient",
    "BitcoinRPCError",
    "ensure_funds",
    "pay",
    "send_payment",
    "SendRequest",
    "TransferError",
    "TransactionReconciler",
    "ReconciliationError",
    "ReportWriter",
    "ensure_wallet",
    "WalletProvisioningError",
    "TransferWorkflow",
]
