"""Mine blocks until a wallet has a spendable balance."""

import structlog

from btc_reconciler.core.gateway import LedgerGateway
from btc_reconciler.models.blockchain import Address, Amount, WalletHandle

logger = structlog.get_logger(__name__)


def ensure_funds(gateway: LedgerGateway, wallet: WalletHandle, target_address: Address,
                 batch_size: int = 10, max_blocks: int = 110) -> Amount:
    """
    Generate blocks to ``target_address`` in batches until ``wallet`` has a
    positive spendable balance.

    Coinbase outputs only become spendable after the maturity delay (100
    confirmations on Bitcoin), which is not queried up front; the loop just
    polls the balance after every batch. Once ``max_blocks`` have been
    generated the current balance is returned even when it is still zero;
    the last batch is shortened so the ceiling is never exceeded.

    Returns:
        The wallet's spendable balance after the last batch.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if max_blocks <= 0:
        raise ValueError(f"max_blocks must be positive, got {max_blocks}")

    log = logger.bind(component="funding_loop", wallet=wallet.name, address=str(target_address))

    initial_balance = Amount.from_btc(gateway.get_balance(wallet))
    log.info("Initial wallet balance", balance=initial_balance.display())

    blocks_mined = 0
    while True:
        batch = min(batch_size, max_blocks - blocks_mined)
        gateway.generate_to_address(batch, str(target_address))
        blocks_mined += batch

        balance = Amount.from_btc(gateway.get_balance(wallet))
        log.info("Mined block batch", blocks_mined=blocks_mined, balance=balance.display())

        if balance > Amount.ZERO:
            return balance

        if blocks_mined >= max_blocks:
            log.warning("Mining ceiling reached without spendable balance",
                        blocks_mined=blocks_mined)
            return balance
