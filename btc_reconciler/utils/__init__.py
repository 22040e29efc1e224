"""Utility functions and helpers."""

from btc_reconciler.utils.logging import setup_logging
from btc_reconciler.utils.bitcoin import (
    AddressValidationError,
    address_networks,
    btc_to_satoshi,
    format_btc,
    require_network,
    satoshi_to_btc,
)

__all__ = [
    "setup_logging",
    "AddressValidationError",
    "address_networks",
    "btc_to_satoshi",
    "format_btc",
    "require_network",
    "satoshi_to_btc",
]
