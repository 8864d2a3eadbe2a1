"""ClaimReceipt ORM — append-only audit trail of successful disbursements.

Invariants:
    - One row per successful claim, written in the same transaction as the
      identity update (a receipt never exists without its balance change)
    - Rows are never updated or deleted
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from faucet.db.base import Base
from faucet.db.types import DecimalText, UTCDateTime


class ClaimReceipt(Base):
    """Audit record for one disbursement."""
    __tablename__ = "claim_receipts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    address: Mapped[str] = mapped_column(
        String(42), ForeignKey("identity_records.address"),
        nullable=False, index=True,
    )
    amount: Mapped[Decimal] = mapped_column(DecimalText, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    tx_hash: Mapped[str | None] = mapped_column(String(100), nullable=True)
