"""Pytest configuration and fixtures for reconciler tests."""

import copy
import hashlib
import itertools
from decimal import Decimal
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import bech32
import pytest

from btc_reconciler.core.rpc_client import BitcoinRPCError
from btc_reconciler.models.blockchain import Address, WalletHandle
from btc_reconciler.models.config import ReconcilerConfig
from btc_reconciler.utils.bitcoin import satoshi_to_btc


COINBASE_MATURITY = 100
HALVING_INTERVAL = 150  # regtest
INITIAL_SUBSIDY_SATS = 50 * 100_000_000


def make_address(seed: str, hrp: str = "bcrt") -> str:
    """Deterministic P2WPKH address for a seed."""
    return bech32.encode(hrp, 0, hashlib.sha256(seed.encode()).digest()[:20])


def _hash(*parts: Any) -> str:
    return hashlib.sha256("|".join(str(part) for part in parts).encode()).hexdigest()


def vout_entry(n: int, sats: int, address: Optional[str], script_type: str = "witness_v0_keyhash") -> Dict[str, Any]:
    """getrawtransaction-shaped output."""
    script_pub_key: Dict[str, Any] = {"hex": "0014" + "00" * 20, "type": script_type}
    if address is not None:
        script_pub_key["address"] = address
    return {"value": satoshi_to_btc(sats), "n": n, "scriptPubKey": script_pub_key}


# ============================================================================
# IN-MEMORY NODE
# ============================================================================

class FakeNode:
    """
    In-memory stand-in for a regtest Bitcoin Core node.

    Simulates named wallets, coinbase maturity, a mempool, single-coin
    payments with change and a flat fee, and transaction/block lookup.
    """

    def __init__(self, fee_sats: int = 1500, change_first: bool = False):
        self.fee_sats = fee_sats
        self.change_first = change_first

        self.existing_wallets: set = set()
        self.loaded_wallets: List[str] = []
        self.address_owner: Dict[str, str] = {}

        genesis = {"hash": _hash("genesis"), "height": 0, "tx": []}
        self.blocks: List[Dict[str, Any]] = [genesis]
        self.blocks_by_hash: Dict[str, Dict[str, Any]] = {genesis["hash"]: genesis}

        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.tx_height: Dict[str, int] = {}
        self.mempool: List[str] = []
        self.spent: set = set()

        self.generate_calls: List[int] = []
        self._counter = itertools.count()

    # -- helpers ------------------------------------------------------------

    @property
    def tip_height(self) -> int:
        return self.blocks[-1]["height"]

    def _require_wallet(self, wallet: WalletHandle) -> str:
        if wallet.name not in self.loaded_wallets:
            raise BitcoinRPCError("RPC Error -18: Requested wallet does not exist or is not loaded",
                                  code=-18, method="wallet")
        return wallet.name

    def _new_address(self, owner: str) -> str:
        address = make_address(f"{owner}-{next(self._counter)}")
        self.address_owner[address] = owner
        return address

    def _spendable_coins(self, name: str):
        for txid, tx in self.transactions.items():
            if txid not in self.tx_height:
                continue
            confirmations = self.tip_height - self.tx_height[txid] + 1
            is_coinbase = "coinbase" in tx["vin"][0]
            if is_coinbase and confirmations < COINBASE_MATURITY + 1:
                continue
            for vout in tx["vout"]:
                address = vout["scriptPubKey"].get("address")
                if self.address_owner.get(address) == name and (txid, vout["n"]) not in self.spent:
                    yield txid, vout

    def _broadcast(self, name: str, payments: List[tuple]) -> str:
        total = sum(sats for _, sats in payments)
        for txid, vout in self._spendable_coins(name):
            coin_sats = int(vout["value"] * 100_000_000)
            if coin_sats >= total + self.fee_sats:
                break
        else:
            raise BitcoinRPCError("RPC Error -6: Insufficient funds", code=-6, method="sendtoaddress")

        self.spent.add((txid, vout["n"]))
        change_sats = coin_sats - total - self.fee_sats
        outputs = list(payments)
        if change_sats > 0:
            change = (self._new_address(name), change_sats)
            outputs = [change] + outputs if self.change_first else outputs + [change]

        new_txid = _hash("tx", txid, vout["n"], next(self._counter))
        self.transactions[new_txid] = {
            "txid": new_txid,
            "vin": [{"txid": txid, "vout": vout["n"], "sequence": 4294967293}],
            "vout": [vout_entry(n, sats, address) for n, (address, sats) in enumerate(outputs)],
        }
        self.mempool.append(new_txid)
        return new_txid

    def add_block(self, txs: List[Dict[str, Any]]) -> str:
        """Confirm pre-built transactions in a new block."""
        height = self.tip_height + 1
        block_hash = _hash("block", height, next(self._counter))
        for tx in txs:
            self.transactions[tx["txid"]] = tx
            self.tx_height[tx["txid"]] = height
        block = {"hash": block_hash, "height": height, "tx": [tx["txid"] for tx in txs]}
        self.blocks.append(block)
        self.blocks_by_hash[block_hash] = block
        return block_hash

    # -- gateway operations -------------------------------------------------

    def get_blockchain_info(self) -> Dict[str, Any]:
        return {"chain": "regtest", "blocks": self.tip_height, "bestblockhash": self.blocks[-1]["hash"]}

    def create_wallet(self, name: str) -> Dict[str, Any]:
        if name in self.existing_wallets:
            raise BitcoinRPCError("RPC Error -4: Wallet file verification failed. Database already exists.",
                                  code=-4, method="createwallet")
        self.existing_wallets.add(name)
        self.loaded_wallets.append(name)
        return {"name": name, "warning": ""}

    def load_wallet(self, name: str) -> Dict[str, Any]:
        if name not in self.existing_wallets:
            raise BitcoinRPCError("RPC Error -18: Wallet file not found.", code=-18, method="loadwallet")
        if name in self.loaded_wallets:
            raise BitcoinRPCError(f"RPC Error -35: Wallet \"{name}\" is already loaded.",
                                  code=-35, method="loadwallet")
        self.loaded_wallets.append(name)
        return {"name": name, "warning": ""}

    def list_wallets(self) -> List[str]:
        return list(self.loaded_wallets)

    def get_new_address(self, wallet: WalletHandle, label: str = "") -> str:
        return self._new_address(self._require_wallet(wallet))

    def get_balance(self, wallet: WalletHandle) -> Decimal:
        name = self._require_wallet(wallet)
        sats = sum(int(vout["value"] * 100_000_000) for _, vout in self._spendable_coins(name))
        return satoshi_to_btc(sats)

    def generate_to_address(self, nblocks: int, address: str) -> List[str]:
        self.generate_calls.append(nblocks)
        hashes = []
        for _ in range(nblocks):
            height = self.tip_height + 1
            subsidy = INITIAL_SUBSIDY_SATS >> (height // HALVING_INTERVAL)
            coinbase_txid = _hash("coinbase", height)
            coinbase = {
                "txid": coinbase_txid,
                "vin": [{"coinbase": f"{height:02x}00", "sequence": 4294967295}],
                "vout": [vout_entry(0, subsidy + self.fee_sats * len(self.mempool), address)],
            }
            pending = [self.transactions[txid] for txid in self.mempool]
            self.mempool = []
            hashes.append(self.add_block([coinbase] + pending))
        return hashes

    def send_to_address(self, wallet: WalletHandle, address: str, amount_btc: Decimal) -> str:
        name = self._require_wallet(wallet)
        return self._broadcast(name, [(address, int(Decimal(amount_btc) * 100_000_000))])

    def send(self, wallet: WalletHandle, request) -> Dict[str, Any]:
        name = self._require_wallet(wallet)
        payments = [(str(address), amount.sats) for address, amount in request.outputs.items()]
        return {"txid": self._broadcast(name, payments), "complete": True}

    def get_mempool_entry(self, txid: str) -> Dict[str, Any]:
        if txid not in self.mempool:
            raise BitcoinRPCError("RPC Error -5: Transaction not in mempool", code=-5, method="getmempoolentry")
        return {"vsize": 141, "fees": {"base": satoshi_to_btc(self.fee_sats)}}

    def get_raw_transaction(self, txid: str, block_hash: Optional[str] = None) -> Dict[str, Any]:
        if block_hash is not None:
            block = self.blocks_by_hash.get(block_hash)
            if block is None:
                raise BitcoinRPCError("RPC Error -5: Block hash not found", code=-5, method="getrawtransaction")
            if txid not in block["tx"]:
                raise BitcoinRPCError("RPC Error -5: No such transaction found in the provided block",
                                      code=-5, method="getrawtransaction")
        if txid not in self.transactions:
            raise BitcoinRPCError("RPC Error -5: No such mempool or blockchain transaction",
                                  code=-5, method="getrawtransaction")

        tx = copy.deepcopy(self.transactions[txid])
        if txid in self.tx_height:
            tx["blockhash"] = self.blocks[self.tx_height[txid]]["hash"]
        return tx

    def get_block(self, block_hash: str) -> Dict[str, Any]:
        if block_hash not in self.blocks_by_hash:
            raise BitcoinRPCError("RPC Error -5: Block not found", code=-5, method="getblock")
        return copy.deepcopy(self.blocks_by_hash[block_hash])


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def fake_node():
    """Fresh in-memory regtest node."""
    return FakeNode()


@pytest.fixture
def config(tmp_path):
    """Workflow configuration writing into a temp dir."""
    return ReconcilerConfig(
        bitcoin_rpc_host="127.0.0.1",
        bitcoin_rpc_port=18443,
        bitcoin_rpc_user="alice",
        bitcoin_rpc_password="password",
        output_path=str(tmp_path / "out.txt"),
        _env_file=None,
    )


@pytest.fixture
def trader_address():
    return Address.require_network(make_address("trader"), "regtest")


@pytest.fixture
def miner_address():
    return Address.require_network(make_address("miner"), "regtest")


@pytest.fixture
def change_address():
    return Address.require_network(make_address("change"), "regtest")


@pytest.fixture
def build_gateway():
    """
    Gateway mock answering from canned transactions and blocks.

    Usage: build_gateway(transactions={txid: raw}, blocks={hash: raw})
    """
    def _build(transactions: Dict[str, Dict[str, Any]], blocks: Dict[str, Dict[str, Any]]):
        gateway = MagicMock()

        def get_raw_transaction(txid, block_hash=None):
            if txid not in transactions:
                raise BitcoinRPCError("RPC Error -5: No such mempool or blockchain transaction", code=-5)
            return copy.deepcopy(transactions[txid])

        def get_block(block_hash):
            if block_hash not in blocks:
                raise BitcoinRPCError("RPC Error -5: Block not found", code=-5)
            return copy.deepcopy(blocks[block_hash])

        gateway.get_raw_transaction.side_effect = get_raw_transaction
        gateway.get_block.side_effect = get_block
        return gateway

    return _build
