"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Identity is the aggregate root; receipts are keyed by its address

Design Decisions:
    - One file per entity for locality
    - All models imported here so metadata is complete before create_all/alembic
"""

from faucet.models.identity import Identity  # noqa: F401
from faucet.models.claim_receipt import ClaimReceipt  # noqa: F401
