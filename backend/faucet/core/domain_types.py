"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - WalletAddress is always canonical: "0x" + 40 lowercase hex chars
    - Every rejection has exactly one stable RejectionReason code
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders (reason codes are
      part of the public claim response)
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

WalletAddress = NewType("WalletAddress", str)


# ─── Enums ───────────────────────────────────────────────────────

class ClaimOutcome(str, Enum):
    """Result tag of a claim attempt."""
    CLAIMED = "claimed"
    REJECTED = "rejected"


class RejectionReason(str, Enum):
    """Stable reason codes for rejected claims, in validation order."""
    INVALID_ADDRESS = "invalid_address"
    VERIFICATION_REQUIRED = "verification_required"
    COOLDOWN_ACTIVE = "cooldown_active"
    DISBURSEMENT_FAILED = "disbursement_failed"
    CONFLICT = "conflict"


class VerificationOutcome(str, Enum):
    """Result of a verification callback."""
    OK = "ok"
    INVALID = "invalid"


class UpdateOutcome(str, Enum):
    """Result of a compare-and-update on an identity record."""
    SUCCESS = "success"
    CONFLICT = "conflict"
