"""Wallet Address — parse and canonicalize EVM addresses.

Invariants:
    - Accepted input: "0x" + exactly 40 hex chars (the same shape the web form enforces)
    - Mixed-case input must carry a valid EIP-55 checksum; all-lower/all-upper skip it
    - Output is always lowercase (the Identity Store key)

Design Decisions:
    - eth_utils for the checksum: keccak-based EIP-55 is not worth re-implementing
"""

import re

from eth_utils import is_checksum_address

from faucet.core.domain_types import WalletAddress

_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def parse_wallet_address(raw: str) -> WalletAddress | None:
    """Return the canonical address, or None if malformed. Pure, no IO."""
    if not isinstance(raw, str):
        return None
    candidate = raw.strip()
    if not _ADDRESS_PATTERN.match(candidate):
        return None
    body = candidate[2:]
    if body != body.lower() and body != body.upper():
        if not is_checksum_address(candidate):
            return None
    return WalletAddress("0x" + body.lower())
