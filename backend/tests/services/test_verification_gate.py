"""Verification Gate — proof validation and the verified-flag transition.

Invariants:
    - valid proof flips verified and records subject/time
    - idempotent: a second valid proof is a no-op OK (version unchanged)
    - invalid proofs and malformed addresses never create or change records
"""

from datetime import timedelta

from faucet.core.domain_types import VerificationOutcome
from faucet.core.verification_proof import VerificationProof, sign_proof

from tests.services.sample_data import ADDRESS, OTHER_ADDRESS, T0, TEST_SECRET


def _proof(address=ADDRESS, subject="discord:1001", issued_at=None, secret=TEST_SECRET):
    issued_at = issued_at if issued_at is not None else int(T0.timestamp())
    return VerificationProof(
        subject=subject, issued_at=issued_at,
        signature=sign_proof(secret, address, subject, issued_at),
    )


async def test_valid_proof_marks_address_verified(runtime, read_record):
    outcome = await runtime.gate.mark_verified(ADDRESS, _proof())
    assert outcome == VerificationOutcome.OK
    record = await read_record()
    assert record.verified is True
    assert record.verified_subject == "discord:1001"
    assert record.verified_at == T0


async def test_mixed_case_input_verifies_canonical_record(runtime, read_record):
    checksummed = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
    canonical = checksummed.lower()
    outcome = await runtime.gate.mark_verified(checksummed, _proof(address=canonical))
    assert outcome == VerificationOutcome.OK
    assert (await read_record(canonical)).verified is True


async def test_reverifying_is_a_noop_success(runtime, read_record):
    await runtime.gate.mark_verified(ADDRESS, _proof())
    version = (await read_record()).version

    outcome = await runtime.gate.mark_verified(ADDRESS, _proof(subject="discord:2002"))

    assert outcome == VerificationOutcome.OK
    record = await read_record()
    assert record.version == version
    assert record.verified_subject == "discord:1001"


async def test_proof_for_another_address_is_invalid(runtime, read_record):
    outcome = await runtime.gate.mark_verified(ADDRESS, _proof(address=OTHER_ADDRESS))
    assert outcome == VerificationOutcome.INVALID
    assert await read_record() is None


async def test_forged_signature_is_invalid(runtime, read_record):
    outcome = await runtime.gate.mark_verified(ADDRESS, _proof(secret="guess"))
    assert outcome == VerificationOutcome.INVALID
    assert await read_record() is None


async def test_expired_proof_is_invalid(runtime):
    stale = int((T0 - timedelta(hours=1)).timestamp())
    outcome = await runtime.gate.mark_verified(ADDRESS, _proof(issued_at=stale))
    assert outcome == VerificationOutcome.INVALID


async def test_malformed_address_is_invalid(runtime):
    outcome = await runtime.gate.mark_verified("not-an-address", _proof())
    assert outcome == VerificationOutcome.INVALID


async def test_verification_does_not_touch_claim_fields(runtime, read_record):
    await runtime.gate.mark_verified(ADDRESS, _proof())
    record = await read_record()
    assert record.last_claim_at is None
    assert record.claim_count == 0


async def test_verified_address_can_then_claim(runtime):
    await runtime.gate.mark_verified(ADDRESS, _proof())
    result = await runtime.engine.claim(ADDRESS, now=T0)
    assert result.claimed
