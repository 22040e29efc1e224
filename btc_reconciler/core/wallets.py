"""Wallet provisioning."""

import structlog

from btc_reconciler.core.gateway import LedgerGateway
from btc_reconciler.core.rpc_client import BitcoinRPCError
from btc_reconciler.models.blockchain import WalletHandle

logger = structlog.get_logger(__name__)


class WalletProvisioningError(Exception):
    """Wallet could neither be created nor loaded."""
    pass


def ensure_wallet(gateway: LedgerGateway, name: str) -> WalletHandle:
    """
    Create a named wallet, or load it when it already exists.

    Safe to call repeatedly: a wallet that is already loaded is accepted
    as-is.
    """
    log = logger.bind(wallet=name)

    try:
        gateway.create_wallet(name)
        log.info("Created wallet")
        return WalletHandle(name)
    except BitcoinRPCError as e:
        log.info("Wallet already exists, attempting to load", error=str(e))

    try:
        gateway.load_wallet(name)
        log.info("Loaded wallet")
    except BitcoinRPCError as e:
        if name not in gateway.list_wallets():
            raise WalletProvisioningError(f"Could not create or load wallet {name!r}: {e}") from e
        log.info("Wallet already loaded")

    return WalletHandle(name)
