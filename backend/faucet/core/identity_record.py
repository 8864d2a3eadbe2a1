"""Identity Record — immutable snapshot of one wallet's faucet state.

Invariants:
    - address is canonical lowercase (see core/wallet_address.py)
    - last_claim_at is None until the first successful claim
    - balance_disbursed only grows; version grows by one on every write
    - Snapshots are frozen: mutations go through IdentityStore.compare_and_update

Design Decisions:
    - Frozen dataclass over the ORM row: callers outside the store never hold a
      live, lazily-mutating object (no mid-update observations)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from faucet.core.domain_types import WalletAddress


@dataclass(frozen=True)
class IdentityRecord:
    address: WalletAddress
    verified: bool = False
    last_claim_at: datetime | None = None
    balance_disbursed: Decimal = Decimal("0")
    claim_count: int = 0
    verified_at: datetime | None = None
    verified_subject: str | None = None
    version: int = 0

    @property
    def has_claimed(self) -> bool:
        return self.last_claim_at is not None
