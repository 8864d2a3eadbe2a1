"""Verification Gate — completes the identity-provider handshake for one address.

Invariants:
    - Only this component sets `verified`; it never sets it back to false
    - Idempotent: verifying an already-verified address is a no-op OK
    - Writes take the per-address lock, so they never land inside a claim's
      critical section (a claim that started first still sees unverified)
    - A proof for one address never verifies another (address is signed)

Design Decisions:
    - Phase 1 of the OAuth flow (redirect) is client-side; this is phase 2,
      a single state transition driven by a signed callback payload
    - Failure labels are logged, the caller only sees OK / INVALID
"""

import logging
from datetime import datetime, timedelta

from faucet.core.domain_types import UpdateOutcome, VerificationOutcome
from faucet.core.errors import ConcurrencyError, ErrorContext
from faucet.core.verification_proof import VerificationProof, check_proof
from faucet.core.wallet_address import parse_wallet_address
from faucet.services.address_locks import AddressLockTable
from faucet.services.identity_store import IdentityStore
from faucet.services.session_scope import Clock, SessionScope, utc_now

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS = 2


class VerificationGate:
    def __init__(
        self,
        session_scope: SessionScope,
        locks: AddressLockTable,
        secret: str,
        max_age: timedelta,
        clock_skew: timedelta,
        clock: Clock = utc_now,
    ):
        self._session_scope = session_scope
        self._locks = locks
        self._secret = secret
        self._max_age = max_age
        self._clock_skew = clock_skew
        self._clock = clock

    async def mark_verified(
        self,
        raw_address: str,
        proof: VerificationProof,
        now: datetime | None = None,
    ) -> VerificationOutcome:
        """Validate `proof` for `raw_address` and flip the record to verified."""
        address = parse_wallet_address(raw_address)
        if address is None:
            logger.warning(
                "Verification rejected", extra={"reason": "invalid_address"},
            )
            return VerificationOutcome.INVALID

        now = now or self._clock()
        failure = check_proof(
            proof, address, self._secret, now, self._max_age, self._clock_skew,
        )
        if failure:
            logger.warning(
                "Verification rejected",
                extra={"address": address, "reason": failure},
            )
            return VerificationOutcome.INVALID

        async with self._locks.hold(address):
            async with self._session_scope() as db:
                store = IdentityStore(db)
                for _ in range(_MAX_ATTEMPTS):
                    record = await store.get(address)
                    if record.verified:
                        return VerificationOutcome.OK
                    outcome = await store.compare_and_update(
                        address, record.version,
                        {
                            "verified": True,
                            "verified_at": now,
                            "verified_subject": proof.subject,
                        },
                    )
                    if outcome == UpdateOutcome.SUCCESS:
                        await db.commit()
                        logger.info(
                            "Address verified", extra={"address": address},
                        )
                        return VerificationOutcome.OK
        raise ConcurrencyError(
            "Identity record kept changing during verification",
            ErrorContext(address=address),
        )
