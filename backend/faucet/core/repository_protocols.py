"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Disbursers raise DisbursementError on any failure; the engine bounds the
      call with its own timeout, so implementations may block on the network
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from faucet.core.domain_types import WalletAddress


@dataclass(frozen=True)
class DisbursementReceipt:
    """Successful transfer acknowledgement from the external relay."""
    tx_hash: str | None = None


class Disburser(Protocol):
    """Contract for the outbound token transfer — implemented by shell.

    `idempotency_key` is stable for a given (address, record version), so a
    retried attempt for the same claim is deduplicated by the relay.
    """
    async def disburse(
        self, address: WalletAddress, amount: Decimal, idempotency_key: str,
    ) -> DisbursementReceipt: ...
