"""Bitcoin Core RPC client for node and wallet access."""

import json
import time
from typing import Dict, Any, Optional, List, TYPE_CHECKING
from decimal import Decimal
from urllib.parse import quote
import requests
import structlog

from btc_reconciler.models.config import ReconcilerConfig
from btc_reconciler.models.blockchain import WalletHandle

if TYPE_CHECKING:
    from btc_reconciler.core.transfer import SendRequest

logger = structlog.get_logger(__name__)


class BitcoinRPCError(Exception):
    """Bitcoin RPC specific error."""

    def __init__(self, message: str, code: Optional[int] = None, method: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.method = method


def _json_default(value: Any) -> str:
    # Core parses string amounts exactly
    if isinstance(value, Decimal):
        return format(value, 'f')
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class BitcoinRPCClient:
    """
    Bitcoin Core JSON-RPC client.

    Every call is a single blocking round trip; failures are raised as
    BitcoinRPCError and never retried here. Wallet-scoped calls are sent to
    the node's ``/wallet/<name>`` endpoint.
    """

    def __init__(self, config: ReconcilerConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'User-Agent': 'btc-reconciler/1.0.0'
        })

        # RPC endpoint
        self.rpc_url = config.bitcoin_rpc_url
        self.auth = (config.bitcoin_rpc_user, config.bitcoin_rpc_password)

        logger.info("Bitcoin RPC client initialized",
                    host=config.bitcoin_rpc_host,
                    port=config.bitcoin_rpc_port)

    def _url_for(self, wallet: Optional[WalletHandle]) -> str:
        if wallet is None:
            return self.rpc_url
        return f"{self.rpc_url}/wallet/{quote(wallet.name, safe='')}"

    def _make_request(self, method: str, params: List[Any] = None,
                      wallet: Optional[WalletHandle] = None) -> Any:
        """Make a single RPC request."""
        if params is None:
            params = []

        payload = {
            "jsonrpc": "1.0",
            "id": int(time.time() * 1000),
            "method": method,
            "params": params
        }

        try:
            response = self.session.post(
                self._url_for(wallet),
                data=json.dumps(payload, default=_json_default),
                auth=self.auth,
                timeout=self.config.bitcoin_rpc_timeout
            )
        except requests.RequestException as e:
            logger.error("RPC request failed", method=method, error=str(e))
            raise BitcoinRPCError(f"RPC request {method} failed: {e}", method=method) from e

        try:
            # Amounts stay exact as Decimal
            data = response.json(parse_float=Decimal)
        except ValueError as e:
            if not response.ok:
                raise BitcoinRPCError(
                    f"RPC request {method} failed with HTTP {response.status_code}",
                    code=response.status_code, method=method
                ) from e
            raise BitcoinRPCError(f"Malformed RPC response for {method}: {e}", method=method) from e

        # Core answers application errors with HTTP 500 and a JSON error body
        if isinstance(data, dict) and data.get('error') is not None:
            error_msg = data['error'].get('message', 'Unknown RPC error')
            error_code = data['error'].get('code', -1)
            logger.debug("RPC error reply", method=method, code=error_code, error=error_msg)
            raise BitcoinRPCError(f"RPC Error {error_code}: {error_msg}", code=error_code, method=method)

        if not response.ok:
            raise BitcoinRPCError(
                f"RPC request {method} failed with HTTP {response.status_code}",
                code=response.status_code, method=method
            )

        if not isinstance(data, dict) or 'result' not in data:
            raise BitcoinRPCError(f"Malformed RPC response for {method}: missing result", method=method)

        return data['result']

    def get_blockchain_info(self) -> Dict[str, Any]:
        """Get blockchain information."""
        return self._make_request("getblockchaininfo")

    def create_wallet(self, name: str) -> Dict[str, Any]:
        """Create a new wallet and load it."""
        return self._make_request("createwallet", [name])

    def load_wallet(self, name: str) -> Dict[str, Any]:
        """Load an existing wallet."""
        return self._make_request("loadwallet", [name])

    def list_wallets(self) -> List[str]:
        """List loaded wallets."""
        return self._make_request("listwallets")

    def get_new_address(self, wallet: WalletHandle, label: str = "") -> str:
        """Get a new receiving address with a label."""
        return self._make_request("getnewaddress", [label], wallet=wallet)

    def get_balance(self, wallet: WalletHandle) -> Decimal:
        """Get the spendable (trusted, mature) balance in BTC."""
        return Decimal(self._make_request("getbalance", wallet=wallet))

    def generate_to_address(self, nblocks: int, address: str) -> List[str]:
        """Mine blocks to an address; returns the new block hashes."""
        return self._make_request("generatetoaddress", [nblocks, address])

    def send_to_address(self, wallet: WalletHandle, address: str, amount_btc: Decimal) -> str:
        """Send an amount in BTC to an address; returns the txid."""
        return self._make_request("sendtoaddress", [address, amount_btc], wallet=wallet)

    def send(self, wallet: WalletHandle, request: "SendRequest") -> Dict[str, Any]:
        """Send through the generic ``send`` call."""
        return self._make_request("send", request.to_params(), wallet=wallet)

    def get_mempool_entry(self, txid: str) -> Dict[str, Any]:
        """Get mempool data for a transaction."""
        return self._make_request("getmempoolentry", [txid])

    def get_raw_transaction(self, txid: str, block_hash: Optional[str] = None) -> Dict[str, Any]:
        """
        Get decoded transaction data.

        Args:
            txid: Transaction id
            block_hash: Block to look the transaction up in; without it the
                node needs the transaction in its mempool, wallet or txindex
        """
        params = [txid, True]
        if block_hash:
            params.append(block_hash)

        return self._make_request("getrawtransaction", params)

    def get_block(self, block_hash: str) -> Dict[str, Any]:
        """Get block data with txids (verbosity 1)."""
        return self._make_request("getblock", [block_hash, 1])

    def test_connection(self) -> bool:
        """Test RPC connection."""
        try:
            info = self.get_blockchain_info()
            logger.info("RPC connection successful",
                        chain=info.get('chain'),
                        blocks=info.get('blocks'))
            return True
        except BitcoinRPCError as e:
            logger.error("RPC connection failed", error=str(e))
            return False

    def close(self):
        """Close the RPC session."""
        self.session.close()
        logger.info("RPC client session closed")
