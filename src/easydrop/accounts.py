"""Account identifiers.

Accounts are Ethereum-style 20-byte addresses. Everything that is keyed
by account (the subscriber ledger, registry ownership, approvals) stores
the checksum form, so "0xabc..." and "0xABC..." name the same account.
"""

from __future__ import annotations

from typing import Iterable, List

from web3 import Web3

from easydrop.errors import InvalidAccount

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_address(value: str) -> str:
    """Return the checksum form of an address.

    Raises:
        InvalidAccount: If value is not a 20-byte hex address.
    """
    if not isinstance(value, str) or not Web3.is_address(value):
        raise InvalidAccount(f"Invalid account address: {value!r}")
    return Web3.to_checksum_address(value)


def normalize_addresses(values: Iterable[str]) -> List[str]:
    return [normalize_address(v) for v in values]


def is_zero_address(value: str) -> bool:
    return normalize_address(value) == ZERO_ADDRESS
