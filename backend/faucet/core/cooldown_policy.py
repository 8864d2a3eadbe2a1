"""Cooldown Policy — may this identity claim now, and how long until it can.

Invariants:
    - PURE: no IO, no clock reads; `now` is supplied by the server-side caller
    - eligible iff never claimed or at least one full window has elapsed
    - remaining is never negative; remaining == 0 whenever eligible
"""

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class CooldownDecision:
    eligible: bool
    remaining: timedelta

    def next_available_at(self, now: datetime) -> datetime:
        return now + self.remaining


def evaluate(
    last_claim_at: datetime | None, now: datetime, window: timedelta,
) -> CooldownDecision:
    """Decide claim eligibility from the last successful claim time."""
    if last_claim_at is None:
        return CooldownDecision(eligible=True, remaining=timedelta(0))
    elapsed = now - last_claim_at
    remaining = max(timedelta(0), window - elapsed)
    return CooldownDecision(eligible=elapsed >= window, remaining=remaining)
