"""Identity ORM — persists one row per wallet address ever seen by the faucet.

Invariants:
    - address is the primary key, canonical lowercase hex
    - version starts at 0 and increments on every write (compare-and-update token)
    - last_claim_at is monotonically non-decreasing; balance_disbursed only grows
    - rows are never deleted

Design Decisions:
    - DecimalText for balances: exact arithmetic on every backend
    - claim fields and verification fields live on the same row: the engine and
      the gate are the only writers, both through IdentityStore
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from faucet.db.base import Base
from faucet.db.types import DecimalText, UTCDateTime


class Identity(Base):
    """Per-wallet faucet state."""
    __tablename__ = "identity_records"

    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    verified_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True,
    )
    verified_subject: Mapped[str | None] = mapped_column(
        String(128), nullable=True,
    )
    last_claim_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime, nullable=True,
    )
    balance_disbursed: Mapped[Decimal] = mapped_column(
        DecimalText, nullable=False, default=Decimal("0"),
    )
    claim_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
