"""Stats Aggregator — cache updates and replay from the Identity Store."""

from datetime import timedelta
from decimal import Decimal

from faucet.core.faucet_stats import FaucetStats
from faucet.services.stats_aggregator import StatsAggregator

from tests.services.sample_data import ADDRESS, OTHER_ADDRESS, T0


def test_starts_empty():
    assert StatsAggregator().snapshot() == FaucetStats(Decimal("0"), 0)


def test_record_claim_counts_first_claim_once():
    stats = StatsAggregator()
    stats.record_claim(Decimal("0.05"), is_first_claim_for_address=True)
    stats.record_claim(Decimal("0.05"), is_first_claim_for_address=False)
    assert stats.snapshot() == FaucetStats(Decimal("0.10"), 1)


def test_snapshot_is_immutable_view():
    stats = StatsAggregator()
    before = stats.snapshot()
    stats.record_claim(Decimal("0.05"), is_first_claim_for_address=True)
    assert before == FaucetStats()


async def test_rebuild_matches_cache_after_claims(runtime, db_scope, mark_verified):
    await mark_verified(ADDRESS)
    await mark_verified(OTHER_ADDRESS)
    await runtime.engine.claim(ADDRESS, now=T0)
    await runtime.engine.claim(ADDRESS, now=T0 + timedelta(hours=24))
    await runtime.engine.claim(OTHER_ADDRESS, now=T0)
    cached = runtime.stats.snapshot()

    replayed = await StatsAggregator().rebuild(db_scope)

    assert replayed == cached == FaucetStats(Decimal("0.15"), 2)


async def test_rebuild_ignores_verified_but_unclaimed(db_scope, mark_verified):
    await mark_verified(ADDRESS)
    assert await StatsAggregator().rebuild(db_scope) == FaucetStats()
