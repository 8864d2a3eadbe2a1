"""Initial schema — identity_records, claim_receipts.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "identity_records",
        sa.Column("address", sa.String(42), primary_key=True),
        sa.Column("verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verified_subject", sa.String(128), nullable=True),
        sa.Column("last_claim_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("balance_disbursed", sa.String(80), nullable=False, server_default="0"),
        sa.Column("claim_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "claim_receipts",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "address", sa.String(42),
            sa.ForeignKey("identity_records.address"), nullable=False,
        ),
        sa.Column("amount", sa.String(80), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("tx_hash", sa.String(100), nullable=True),
    )
    op.create_index(
        "ix_claim_receipts_address", "claim_receipts", ["address"],
    )


def downgrade() -> None:
    op.drop_index("ix_claim_receipts_address", table_name="claim_receipts")
    op.drop_table("claim_receipts")
    op.drop_table("identity_records")
