"""Bitcoin-specific utility functions."""

from decimal import Decimal, InvalidOperation
from typing import Dict, FrozenSet, Optional, Tuple, Union

import base58
import bech32
import structlog

logger = structlog.get_logger(__name__)

# Satoshis per Bitcoin
SATOSHIS_PER_BTC = Decimal('100000000')

# Base58 version bytes: (P2PKH, P2SH)
BASE58_VERSIONS: Dict[str, Tuple[int, int]] = {
    'mainnet': (0x00, 0x05),
    'testnet': (0x6f, 0xc4),
    'signet': (0x6f, 0xc4),
    'regtest': (0x6f, 0xc4),
}

# SegWit human-readable parts
BECH32_HRPS: Dict[str, str] = {
    'mainnet': 'bc',
    'testnet': 'tb',
    'signet': 'tb',
    'regtest': 'bcrt',
}


class AddressValidationError(ValueError):
    """Address does not decode for the expected network."""

    def __init__(self, address: str, network: str, reason: str = "wrong network"):
        self.address = address
        self.network = network
        super().__init__(f"Address validation error: {address!r} is not a valid {network} address ({reason})")


def satoshi_to_btc(satoshis: int) -> Decimal:
    """Convert satoshis to BTC."""
    return Decimal(satoshis) / SATOSHIS_PER_BTC


def btc_to_satoshi(btc: Union[Decimal, str, int]) -> int:
    """
    Convert BTC to satoshis without rounding.

    Floats are refused: a float amount has already lost the precision
    this conversion is meant to preserve.
    """
    if isinstance(btc, float):
        raise TypeError("BTC amounts must be Decimal, str or int, not float")
    try:
        value = Decimal(btc) * SATOSHIS_PER_BTC
    except InvalidOperation as e:
        raise ValueError(f"Invalid BTC amount: {btc!r}") from e

    if value != value.to_integral_value():
        raise ValueError(f"BTC amount {btc} has sub-satoshi precision")
    return int(value)


def format_btc(satoshis: int) -> str:
    """Render satoshis as a plain BTC string without exponent or trailing zeros."""
    text = format(satoshi_to_btc(satoshis), 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def _base58_networks(address: str) -> FrozenSet[str]:
    try:
        payload = base58.b58decode_check(address)
    except ValueError:
        return frozenset()

    if len(payload) != 21:
        return frozenset()

    version = payload[0]
    return frozenset(
        network for network, versions in BASE58_VERSIONS.items()
        if version in versions
    )


def _bech32_networks(address: str) -> FrozenSet[str]:
    hrp = address.lower().rsplit('1', 1)[0]
    networks = frozenset(
        network for network, network_hrp in BECH32_HRPS.items()
        if network_hrp == hrp
    )
    if not networks:
        return frozenset()

    witver, witprog = bech32.decode(hrp, address)
    if witver is None or witprog is None:
        return frozenset()
    return networks


def address_networks(address: Optional[str]) -> FrozenSet[str]:
    """Return the networks an address is valid on (empty when undecodable)."""
    if not address:
        return frozenset()

    if '1' in address and address.lower().rsplit('1', 1)[0] in BECH32_HRPS.values():
        return _bech32_networks(address)
    return _base58_networks(address)


def require_network(address: str, network: str) -> str:
    """Return the canonical address string or raise AddressValidationError."""
    networks = address_networks(address)
    if not networks:
        raise AddressValidationError(address, network, "undecodable address")
    if network not in networks:
        raise AddressValidationError(address, network, f"belongs to {', '.join(sorted(networks))}")

    # Bech32 strings are canonically lowercase
    if address.lower().rsplit('1', 1)[0] == BECH32_HRPS[network]:
        return address.lower()
    return address
