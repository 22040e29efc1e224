"""Payment broadcast from a wallet."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional
import structlog

from btc_reconciler.core.gateway import LedgerGateway
from btc_reconciler.models.blockchain import Address, Amount, WalletHandle

logger = structlog.get_logger(__name__)


class TransferError(Exception):
    """Payment was not broadcast."""
    pass


@dataclass
class SendRequest:
    """
    Arguments of the wallet ``send`` call.

    ``outputs`` maps destination addresses to amounts; the remaining fields
    are passed positionally and left to node defaults when None.
    """
    outputs: Dict[Address, Amount]
    conf_target: Optional[int] = None
    estimate_mode: Optional[str] = None
    fee_rate: Optional[Decimal] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_params(self) -> List[Any]:
        if not self.outputs:
            raise ValueError("SendRequest needs at least one output")
        return [
            [{str(address): amount.to_btc()} for address, amount in self.outputs.items()],
            self.conf_target,
            self.estimate_mode,
            self.fee_rate,
            self.options or None,
        ]


def pay(gateway: LedgerGateway, source_wallet: WalletHandle,
        destination: Address, amount: Amount) -> str:
    """
    Send ``amount`` from ``source_wallet`` to ``destination``.

    The transaction is only broadcast; it is confirmed once a block includes
    it. Insufficient funds and similar node errors propagate unchanged.
    """
    if amount <= Amount.ZERO:
        raise ValueError(f"Payment amount must be positive, got {amount}")

    txid = gateway.send_to_address(source_wallet, str(destination), amount.to_btc())
    logger.info("Transaction sent",
                txid=txid,
                wallet=source_wallet.name,
                destination=str(destination),
                amount=amount.display())
    return txid


def send_payment(gateway: LedgerGateway, source_wallet: WalletHandle, request: SendRequest) -> str:
    """Broadcast through ``send``; the node must report a complete transaction."""
    result = gateway.send(source_wallet, request)

    if not result.get('complete'):
        raise TransferError(f"Wallet {source_wallet.name!r} returned an incomplete transaction")

    txid = result['txid']
    logger.info("Transaction sent", txid=txid, wallet=source_wallet.name, outputs=len(request.outputs))
    return txid
