"""Claim Concurrency — per-address exclusion and compare-and-update races.

Invariants:
    - N concurrent claims for one fresh address → exactly 1 success
    - Concurrent claims for different addresses do not serialize on each other
    - A lost compare-and-update race is retried without a second transfer
    - With retries exhausted the caller sees `conflict`, nothing is recorded,
      and the caller's retry reuses the same idempotency key
    - A verification that starts after a claim waits for the claim to finish
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from faucet.core.domain_types import RejectionReason
from faucet.core.faucet_stats import FaucetStats
from faucet.core.repository_protocols import DisbursementReceipt
from faucet.core.verification_proof import VerificationProof, sign_proof
from faucet.services.faucet_runtime import build_runtime
from faucet.services.identity_store import IdentityStore

from tests.services.sample_data import ADDRESS, OTHER_ADDRESS, T0, TEST_SECRET
from tests.services.fake_disburser import FakeDisburser


class _ForeignWriterDisburser:
    """Simulates another process writing the record while the transfer is in flight."""

    def __init__(self, db_scope, mutation, times=1):
        self.db_scope = db_scope
        self.mutation = mutation
        self.times = times
        self.calls = []

    async def disburse(self, address, amount, idempotency_key):
        self.calls.append(idempotency_key)
        if self.times > 0:
            self.times -= 1
            async with self.db_scope() as db:
                store = IdentityStore(db)
                record = await store.get(address)
                await store.compare_and_update(address, record.version, self.mutation)
                await db.commit()
        return DisbursementReceipt(tx_hash="0xfeed")


async def test_concurrent_claims_for_one_address_yield_exactly_one_success(
    settings, db_scope, clock, mark_verified, read_record,
):
    disburser = FakeDisburser(delay=0.01)
    runtime = build_runtime(settings, db_scope, disburser, clock=clock)
    await mark_verified()

    results = await asyncio.gather(
        *(runtime.engine.claim(ADDRESS) for _ in range(10)),
    )

    successes = [r for r in results if r.claimed]
    rejections = [r for r in results if not r.claimed]
    assert len(successes) == 1
    assert len(rejections) == 9
    assert {r.reason for r in rejections} <= {
        RejectionReason.COOLDOWN_ACTIVE, RejectionReason.CONFLICT,
    }
    assert len(disburser.calls) == 1
    assert (await read_record()).balance_disbursed == Decimal("0.05")
    assert runtime.stats.snapshot() == FaucetStats(Decimal("0.05"), 1)


async def test_different_addresses_claim_in_parallel(
    settings, db_scope, clock, mark_verified,
):
    settings.disbursement_timeout_seconds = 5
    disburser = FakeDisburser(delay=0.3)
    runtime = build_runtime(settings, db_scope, disburser, clock=clock)
    await mark_verified(ADDRESS)
    await mark_verified(OTHER_ADDRESS)

    loop = asyncio.get_running_loop()
    started = loop.time()
    first, second = await asyncio.gather(
        runtime.engine.claim(ADDRESS), runtime.engine.claim(OTHER_ADDRESS),
    )
    elapsed = loop.time() - started

    assert first.claimed and second.claimed
    # Serialized execution would need at least two full disbursement delays
    assert elapsed < 0.55
    assert runtime.stats.snapshot() == FaucetStats(Decimal("0.10"), 2)


async def test_lost_race_against_foreign_claim_resolves_to_cooldown(
    settings, db_scope, clock, mark_verified, read_record,
):
    foreign = _ForeignWriterDisburser(
        db_scope,
        {"last_claim_at": T0, "balance_disbursed": Decimal("0.05"), "claim_count": 1},
    )
    runtime = build_runtime(settings, db_scope, foreign, clock=clock)
    await mark_verified()

    result = await runtime.engine.claim(ADDRESS, now=T0 + timedelta(minutes=1))

    assert result.reason == RejectionReason.COOLDOWN_ACTIVE
    # Same claim ordinal as the foreign writer, so the relay pays it once
    assert foreign.calls == [f"claim:{ADDRESS}:1"]
    record = await read_record()
    assert record.balance_disbursed == Decimal("0.05")
    assert record.claim_count == 1
    assert runtime.stats.snapshot() == FaucetStats()


async def test_lost_race_on_unrelated_field_records_without_second_transfer(
    settings, db_scope, clock, mark_verified, read_record,
):
    foreign = _ForeignWriterDisburser(db_scope, {"verified_subject": "discord:7"})
    runtime = build_runtime(settings, db_scope, foreign, clock=clock)
    await mark_verified()

    result = await runtime.engine.claim(ADDRESS, now=T0)

    assert result.claimed
    assert result.tx_hash == "0xfeed"
    assert foreign.calls == [f"claim:{ADDRESS}:1"]
    record = await read_record()
    assert record.claim_count == 1
    assert record.balance_disbursed == Decimal("0.05")
    assert record.verified_subject == "discord:7"
    assert runtime.stats.snapshot() == FaucetStats(Decimal("0.05"), 1)


async def test_conflict_surfaces_when_retries_exhausted(
    settings, db_scope, clock, mark_verified, read_record,
):
    settings.claim_conflict_retries = 0
    foreign = _ForeignWriterDisburser(db_scope, {"verified_subject": "discord:7"})
    runtime = build_runtime(settings, db_scope, foreign, clock=clock)
    await mark_verified()

    result = await runtime.engine.claim(ADDRESS, now=T0)

    assert result.reason == RejectionReason.CONFLICT
    assert (await read_record()).last_claim_at is None
    assert runtime.stats.snapshot() == FaucetStats()

    retried = await runtime.engine.claim(ADDRESS, now=T0 + timedelta(seconds=1))

    assert retried.claimed
    # The caller's retry pays the same claim, not a new one
    assert foreign.calls == [f"claim:{ADDRESS}:1"] * 2
    assert (await read_record()).balance_disbursed == Decimal("0.05")


async def test_verification_waits_for_in_flight_claim(
    settings, db_scope, clock, read_record,
):
    disburser = FakeDisburser(delay=0.05)
    runtime = build_runtime(settings, db_scope, disburser, clock=clock)
    issued_at = int(T0.timestamp())
    proof = VerificationProof(
        "discord:1", issued_at, sign_proof(TEST_SECRET, ADDRESS, "discord:1", issued_at),
    )

    claim_task = asyncio.create_task(runtime.engine.claim(ADDRESS))
    await asyncio.sleep(0)
    verify_task = asyncio.create_task(runtime.gate.mark_verified(ADDRESS, proof))
    claim_result, _ = await asyncio.gather(claim_task, verify_task)

    assert claim_result.reason == RejectionReason.VERIFICATION_REQUIRED
    assert (await read_record()).verified is True
