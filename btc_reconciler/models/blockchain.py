"""Blockchain data models for the transfer workflow."""

from decimal import Decimal
from functools import total_ordering
from typing import ClassVar, List, Optional, Tuple, Union
from dataclasses import dataclass, field

from btc_reconciler.utils.bitcoin import btc_to_satoshi, format_btc, require_network, satoshi_to_btc


@dataclass(frozen=True)
class WalletHandle:
    """A named wallet loaded on the node."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Address:
    """An address validated against a specific network."""
    value: str
    network: str

    @classmethod
    def require_network(cls, value: str, network: str) -> "Address":
        """Validate ``value`` for ``network``; raises AddressValidationError."""
        return cls(value=require_network(value, network), network=network)

    def __str__(self) -> str:
        return self.value


@total_ordering
@dataclass(frozen=True)
class Amount:
    """
    Monetary value stored as integer satoshis.

    The BTC form is derived for display only; arithmetic stays in satoshis.
    """
    sats: int

    ZERO: ClassVar["Amount"]

    def __post_init__(self):
        if isinstance(self.sats, bool) or not isinstance(self.sats, int):
            raise TypeError(f"Amount requires integer satoshis, got {type(self.sats).__name__}")
        if self.sats < 0:
            raise ValueError(f"Amount cannot be negative: {self.sats} sat")

    @classmethod
    def from_sat(cls, sats: int) -> "Amount":
        return cls(sats)

    @classmethod
    def from_btc(cls, btc: Union[Decimal, str, int]) -> "Amount":
        return cls(btc_to_satoshi(btc))

    def to_btc(self) -> Decimal:
        return satoshi_to_btc(self.sats)

    def display(self) -> str:
        return format_btc(self.sats)

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.sats + other.sats)

    def __sub__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.sats - other.sats)

    def __lt__(self, other: "Amount") -> bool:
        if not isinstance(other, Amount):
            return NotImplemented
        return self.sats < other.sats

    def __bool__(self) -> bool:
        return self.sats > 0

    def __str__(self) -> str:
        return f"{self.display()} BTC"


Amount.ZERO = Amount(0)


@dataclass(frozen=True)
class TxInput:
    """Transaction input reference to a previous output."""
    txid: Optional[str]
    vout: Optional[int]
    is_coinbase: bool = False


@dataclass(frozen=True)
class TxOutput:
    """Transaction output; address is None for non-standard scripts."""
    index: int
    amount: Amount
    address: Optional[Address] = None


@dataclass
class TransactionRecord:
    """Decoded transaction from getrawtransaction."""
    txid: str
    inputs: List[TxInput] = field(default_factory=list)
    outputs: List[TxOutput] = field(default_factory=list)
    block_hash: Optional[str] = None


@dataclass
class BlockRecord:
    """Decoded block header and membership from getblock."""
    block_hash: str
    height: int
    txids: List[str] = field(default_factory=list)

    def contains(self, txid: str) -> bool:
        return txid in self.txids


@dataclass(frozen=True)
class ReconciledTransfer:
    """Economic details of a confirmed transfer, derived from node data."""
    txid: str
    funding_address: Address
    funding_amount: Amount
    recipient_address: Optional[Address]
    recipient_amount: Amount
    change_address: Optional[Address]
    change_amount: Amount
    fee: Amount
    block_height: int
    block_hash: str

    def report_lines(self) -> Tuple[str, ...]:
        """Report fields in their fixed order, amounts in BTC."""
        return (
            self.txid,
            str(self.funding_address),
            self.funding_amount.display(),
            str(self.recipient_address) if self.recipient_address else "",
            self.recipient_amount.display(),
            str(self.change_address) if self.change_address else "",
            self.change_amount.display(),
            self.fee.display(),
            str(self.block_height),
            self.block_hash,
        )
