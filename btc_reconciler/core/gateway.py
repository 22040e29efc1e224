"""
Ledger gateway protocol.

The workflow talks to the node only through these operations, so the
JSON-RPC client and in-memory test doubles are interchangeable.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, TYPE_CHECKING

from btc_reconciler.models.blockchain import WalletHandle

if TYPE_CHECKING:
    from btc_reconciler.core.transfer import SendRequest


class LedgerGateway(Protocol):
    """Protocol for node and wallet operations."""

    def get_blockchain_info(self) -> Dict[str, Any]:
        """Get chain name, height and sync state."""
        ...

    def create_wallet(self, name: str) -> Dict[str, Any]:
        """Create and load a named wallet."""
        ...

    def load_wallet(self, name: str) -> Dict[str, Any]:
        """Load an existing named wallet."""
        ...

    def list_wallets(self) -> List[str]:
        """Names of currently loaded wallets."""
        ...

    def get_new_address(self, wallet: WalletHandle, label: str = "") -> str:
        """Issue a receiving address from a wallet."""
        ...

    def get_balance(self, wallet: WalletHandle) -> Decimal:
        """Spendable wallet balance in BTC."""
        ...

    def generate_to_address(self, nblocks: int, address: str) -> List[str]:
        """Mine blocks paying the coinbase to an address; returns block hashes."""
        ...

    def send_to_address(self, wallet: WalletHandle, address: str, amount_btc: Decimal) -> str:
        """Broadcast a payment; returns the txid."""
        ...

    def send(self, wallet: WalletHandle, request: "SendRequest") -> Dict[str, Any]:
        """Broadcast a payment through the generic send call."""
        ...

    def get_mempool_entry(self, txid: str) -> Dict[str, Any]:
        """Mempool data for an unconfirmed transaction."""
        ...

    def get_raw_transaction(self, txid: str, block_hash: Optional[str] = None) -> Dict[str, Any]:
        """Decoded transaction, optionally looked up in a specific block."""
        ...

    def get_block(self, block_hash: str) -> Dict[str, Any]:
        """Block header data with the list of txids."""
        ...
