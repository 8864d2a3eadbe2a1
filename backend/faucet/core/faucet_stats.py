"""Faucet Stats — pure derivation of aggregate totals from identity records.

Invariants:
    - total_claimed == sum of balance_disbursed over all records
    - total_claimers == number of records with at least one successful claim
    - Never raises on empty input — returns zero stats

Design Decisions:
    - Pure function over a store query: the Stats Aggregator cache is primed by
      replaying records through derive_stats, so cache and store share one definition
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from faucet.core.identity_record import IdentityRecord


@dataclass(frozen=True)
class FaucetStats:
    total_claimed: Decimal = Decimal("0")
    total_claimers: int = 0


def derive_stats(records: Iterable[IdentityRecord]) -> FaucetStats:
    """Replay identity records into totals. Pure, no IO."""
    total = Decimal("0")
    claimers = 0
    for record in records:
        total += record.balance_disbursed
        if record.has_claimed:
            claimers += 1
    return FaucetStats(total_claimed=total, total_claimers=claimers)


def format_amount(amount: Decimal) -> str:
    """Render a decimal amount without exponent or trailing zeros ("0.1", "0")."""
    if amount == 0:
        return "0"
    return format(amount.normalize(), "f")
