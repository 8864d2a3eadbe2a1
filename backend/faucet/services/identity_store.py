"""Identity Store — per-wallet records with lazy creation and versioned writes.

Invariants:
    - get() never fails for a canonical address: absent rows are created unverified
    - compare_and_update() applies a mutation only if the stored version still
      equals expected_version, and bumps the version in the same statement
    - last_claim_at never moves backwards (enforced in the UPDATE predicate)
    - Callers own the transaction: nothing here commits

Design Decisions:
    - Store bound to one AsyncSession (unit of work), constructed per operation
    - Returns frozen IdentityRecord snapshots, never live ORM rows
    - Lazy creation is safe in-process because every caller holds the
      per-address lock; a cross-process insert race surfaces as DatabaseError
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from faucet.core.domain_types import UpdateOutcome, WalletAddress
from faucet.core.identity_record import IdentityRecord
from faucet.models.claim_receipt import ClaimReceipt
from faucet.models.identity import Identity

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = frozenset({
    "verified", "verified_at", "verified_subject",
    "last_claim_at", "balance_disbursed", "claim_count",
})


def _to_record(row: Identity) -> IdentityRecord:
    return IdentityRecord(
        address=WalletAddress(row.address),
        verified=row.verified,
        last_claim_at=row.last_claim_at,
        balance_disbursed=row.balance_disbursed,
        claim_count=row.claim_count,
        verified_at=row.verified_at,
        verified_subject=row.verified_subject,
        version=row.version,
    )


class IdentityStore:
    """Persistence for IdentityRecord, scoped to one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, address: WalletAddress) -> IdentityRecord:
        """Return the record for `address`, creating a fresh unverified one if absent."""
        row = await self.db.get(Identity, address, populate_existing=True)
        if row is None:
            row = Identity(
                address=address, verified=False,
                balance_disbursed=Decimal("0"), claim_count=0, version=0,
            )
            self.db.add(row)
            await self.db.flush()
            logger.info("Identity record created", extra={"address": address})
        return _to_record(row)

    async def find(self, address: WalletAddress) -> IdentityRecord | None:
        """Read-only lookup; never creates a record."""
        row = await self.db.get(Identity, address, populate_existing=True)
        return _to_record(row) if row else None

    async def compare_and_update(
        self,
        address: WalletAddress,
        expected_version: int,
        mutation: Mapping[str, object],
    ) -> UpdateOutcome:
        """Apply `mutation` iff the record is still at `expected_version`."""
        unknown = set(mutation) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Immutable or unknown fields: {sorted(unknown)}")

        stmt = (
            update(Identity)
            .where(Identity.address == address)
            .where(Identity.version == expected_version)
            .values(**mutation, version=Identity.version + 1)
            .execution_options(synchronize_session=False)
        )
        new_claim_at = mutation.get("last_claim_at")
        if isinstance(new_claim_at, datetime):
            stmt = stmt.where(or_(
                Identity.last_claim_at.is_(None),
                Identity.last_claim_at <= new_claim_at,
            ))
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            return UpdateOutcome.CONFLICT
        return UpdateOutcome.SUCCESS

    def add_receipt(
        self,
        address: WalletAddress,
        amount: Decimal,
        claimed_at: datetime,
        tx_hash: str | None,
    ) -> None:
        self.db.add(ClaimReceipt(
            address=address, amount=amount,
            claimed_at=claimed_at, tx_hash=tx_hash,
        ))

    async def iter_records(self) -> list[IdentityRecord]:
        """All records, for replaying derived state."""
        result = await self.db.execute(
            select(Identity).order_by(Identity.address),
        )
        return [_to_record(row) for row in result.scalars().all()]
