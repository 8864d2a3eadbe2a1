"""Claim Result — tagged outcome of a single claim attempt.

Invariants:
    - CLAIMED results carry amount and claimed_at; they never carry a reason
    - REJECTED results carry exactly one RejectionReason
    - remaining is set only for COOLDOWN_ACTIVE rejections
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from faucet.core.domain_types import ClaimOutcome, RejectionReason, WalletAddress


@dataclass(frozen=True)
class ClaimResult:
    outcome: ClaimOutcome
    address: WalletAddress | None = None
    amount: Decimal | None = None
    claimed_at: datetime | None = None
    next_available_at: datetime | None = None
    tx_hash: str | None = None
    reason: RejectionReason | None = None
    remaining: timedelta | None = None

    @property
    def claimed(self) -> bool:
        return self.outcome == ClaimOutcome.CLAIMED

    @classmethod
    def success(
        cls,
        address: WalletAddress,
        amount: Decimal,
        claimed_at: datetime,
        window: timedelta,
        tx_hash: str | None = None,
    ) -> "ClaimResult":
        return cls(
            outcome=ClaimOutcome.CLAIMED, address=address, amount=amount,
            claimed_at=claimed_at, next_available_at=claimed_at + window,
            tx_hash=tx_hash,
        )

    @classmethod
    def rejected(
        cls,
        reason: RejectionReason,
        address: WalletAddress | None = None,
        remaining: timedelta | None = None,
        next_available_at: datetime | None = None,
    ) -> "ClaimResult":
        return cls(
            outcome=ClaimOutcome.REJECTED, address=address, reason=reason,
            remaining=remaining, next_available_at=next_available_at,
        )
