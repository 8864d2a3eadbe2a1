"""Claim Engine — validates, disburses, and records one faucet claim.

Invariants:
    - Validation order is fixed and short-circuits: address → verified →
      cooldown → disbursement; each failure has its own RejectionReason
    - At most one successful claim per address per cooldown window: the
      re-read, the disbursement, and the write all run under the address lock
    - Rejections never mutate state (the engine never creates records)
    - Fire, then record: state changes only after the transfer succeeds;
      transfer failure or timeout yields DISBURSEMENT_FAILED and no write
    - Identity update, receipt row and stats bump are one unit: the DB commit
      comes first and the in-process stats update follows with no await between
    - No DB session is open while the transfer is in flight
    - `now` is server time; it is read after the lock is acquired

Design Decisions:
    - Result objects, not exceptions, for rejections: every outcome is a
      ClaimResult with a stable reason code (ADR: uniform claim response shape)
    - Idempotency key = address + ordinal of the claim being paid
      (claim_count + 1). Only a recorded claim moves it, so writes to other
      fields, a lost race, or a caller retry after `conflict` all reuse the
      key and the relay pays that claim once
    - A lost compare-and-update race is retried `conflict_retries` times with
      the receipt already in hand; the transfer is not repeated
"""

import asyncio
import logging
from datetime import datetime, timedelta
from decimal import Decimal

from faucet.core.claim_result import ClaimResult
from faucet.core.cooldown_policy import evaluate
from faucet.core.domain_types import RejectionReason, UpdateOutcome, WalletAddress
from faucet.core.errors import ConcurrencyError, DisbursementError, ErrorContext
from faucet.core.identity_record import IdentityRecord
from faucet.core.repository_protocols import Disburser, DisbursementReceipt
from faucet.core.wallet_address import parse_wallet_address
from faucet.services.address_locks import AddressLockTable
from faucet.services.identity_store import IdentityStore
from faucet.services.session_scope import Clock, SessionScope, utc_now
from faucet.services.stats_aggregator import StatsAggregator

logger = logging.getLogger(__name__)


def idempotency_key(address: WalletAddress, claim_number: int) -> str:
    return f"claim:{address}:{claim_number}"


class ClaimEngine:
    def __init__(
        self,
        session_scope: SessionScope,
        disburser: Disburser,
        stats: StatsAggregator,
        locks: AddressLockTable,
        amount: Decimal,
        window: timedelta,
        disbursement_timeout: float,
        conflict_retries: int = 1,
        clock: Clock = utc_now,
    ):
        self._session_scope = session_scope
        self._disburser = disburser
        self._stats = stats
        self._locks = locks
        self.amount = amount
        self.window = window
        self._disbursement_timeout = disbursement_timeout
        self._conflict_retries = conflict_retries
        self._clock = clock

    async def claim(
        self, raw_address: str, now: datetime | None = None,
    ) -> ClaimResult:
        """Run one claim attempt end to end."""
        address = parse_wallet_address(raw_address)
        if address is None:
            return self._logged(
                ClaimResult.rejected(RejectionReason.INVALID_ADDRESS),
            )

        # idempotency key -> receipt, kept across conflict retries
        paid: dict[str, DisbursementReceipt] = {}
        for attempt in range(self._conflict_retries + 1):
            try:
                return self._logged(
                    await self._claim_exclusive(address, now, paid),
                )
            except ConcurrencyError:
                logger.warning(
                    "Claim lost compare-and-update race",
                    extra={"address": address, "attempt": attempt + 1},
                )
        return self._logged(
            ClaimResult.rejected(RejectionReason.CONFLICT, address),
        )

    async def _claim_exclusive(
        self,
        address: WalletAddress,
        now: datetime | None,
        paid: dict[str, DisbursementReceipt],
    ) -> ClaimResult:
        async with self._locks.hold(address):
            claim_time = now or self._clock()
            async with self._session_scope() as db:
                record = await IdentityStore(db).find(address)

            if record is None or not record.verified:
                return ClaimResult.rejected(
                    RejectionReason.VERIFICATION_REQUIRED, address,
                )

            decision = evaluate(record.last_claim_at, claim_time, self.window)
            if not decision.eligible:
                return ClaimResult.rejected(
                    RejectionReason.COOLDOWN_ACTIVE, address,
                    remaining=decision.remaining,
                    next_available_at=decision.next_available_at(claim_time),
                )

            key = idempotency_key(address, record.claim_count + 1)
            receipt = paid.get(key)
            if receipt is None:
                receipt = await self._disburse(record, key)
                if receipt is None:
                    return ClaimResult.rejected(
                        RejectionReason.DISBURSEMENT_FAILED, address,
                    )
                paid[key] = receipt

            await self._record(record, claim_time, receipt)

        return ClaimResult.success(
            address, self.amount, claim_time, self.window, receipt.tx_hash,
        )

    async def _record(
        self,
        record: IdentityRecord,
        claim_time: datetime,
        receipt: DisbursementReceipt,
    ) -> None:
        """Versioned write of the claim, then the stats bump."""
        async with self._session_scope() as db:
            store = IdentityStore(db)
            outcome = await store.compare_and_update(
                record.address, record.version,
                {
                    "last_claim_at": claim_time,
                    "balance_disbursed": record.balance_disbursed + self.amount,
                    "claim_count": record.claim_count + 1,
                },
            )
            if outcome == UpdateOutcome.CONFLICT:
                raise ConcurrencyError(
                    "Identity record changed during claim",
                    ErrorContext(address=record.address),
                )
            store.add_receipt(
                record.address, self.amount, claim_time, receipt.tx_hash,
            )
            await db.commit()
            self._stats.record_claim(
                self.amount, is_first_claim_for_address=not record.has_claimed,
            )

    async def _disburse(
        self, record: IdentityRecord, key: str,
    ) -> DisbursementReceipt | None:
        """Bounded transfer call; None means the claim must not be recorded."""
        try:
            return await asyncio.wait_for(
                self._disburser.disburse(record.address, self.amount, key),
                timeout=self._disbursement_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Disbursement timed out",
                extra={"address": record.address, "failure_type": "timeout"},
            )
        except DisbursementError as e:
            logger.warning(
                f"Disbursement failed: {e.message}",
                extra={"address": record.address, "failure_type": e.failure_type},
            )
        return None

    def _logged(self, result: ClaimResult) -> ClaimResult:
        if result.claimed:
            logger.info(
                f"Claimed {result.amount}",
                extra={"address": result.address, "tx_hash": result.tx_hash},
            )
        else:
            logger.info(
                "Claim rejected",
                extra={"address": result.address, "reason": result.reason.value},
            )
        return result
