"""Stats Aggregator — cached faucet totals, cheap enough for frequent polling.

Invariants:
    - snapshot() is read-only and never touches the database
    - record_claim() is called only by ClaimEngine, right after its commit,
      with no await in between (readers never see the DB ahead of the cache)
    - The cache always equals derive_stats(all identity records)

Design Decisions:
    - In-process cache primed by replay (ADR: single-process uvicorn, same
      trade-off as the lock table; rebuild() re-derives from the store)
    - Whole FaucetStats object swapped on update: readers get a consistent pair
"""

import logging
from decimal import Decimal

from faucet.core.faucet_stats import FaucetStats, derive_stats
from faucet.services.identity_store import IdentityStore
from faucet.services.session_scope import SessionScope

logger = logging.getLogger(__name__)


class StatsAggregator:
    def __init__(self) -> None:
        self._stats = FaucetStats()

    def snapshot(self) -> FaucetStats:
        return self._stats

    def record_claim(self, amount: Decimal, is_first_claim_for_address: bool) -> None:
        current = self._stats
        self._stats = FaucetStats(
            total_claimed=current.total_claimed + amount,
            total_claimers=current.total_claimers + (1 if is_first_claim_for_address else 0),
        )

    async def rebuild(self, session_scope: SessionScope) -> FaucetStats:
        """Replay the Identity Store into the cache. Call before serving claims."""
        async with session_scope() as db:
            records = await IdentityStore(db).iter_records()
        self._stats = derive_stats(records)
        logger.info(
            f"Stats rebuilt: {self._stats.total_claimers} claimers, "
            f"{self._stats.total_claimed} claimed",
        )
        return self._stats
