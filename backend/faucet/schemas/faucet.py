"""Faucet Schemas — Pydantic models for the claim, verification, stats and wallet endpoints.

Invariants:
    - Wire format is camelCase (walletAddress, nextAvailableAt) to match the web client
    - Amounts are decimal strings on the wire, never floats
    - Address *format* is checked by the engine, not here: a malformed address
      must come back as reason `invalid_address`, not a generic validation error
      (schema failures on walletAddress are mapped the same way, see
      api/error_handlers.py)

Design Decisions:
    - alias_generator=to_camel + populate_by_name: snake_case in Python, camelCase in JSON
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from faucet.core.claim_result import ClaimResult
from faucet.core.domain_types import RejectionReason
from faucet.core.faucet_stats import FaucetStats, format_amount
from faucet.core.verification_proof import VerificationProof


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Claim ----------------------------------------------------------------------

class ClaimRequest(CamelModel):
    # Payload-size guard only; the format check belongs to the engine
    wallet_address: str = Field(max_length=4096)


class ClaimSuccessResponse(CamelModel):
    amount: str
    claimed_at: datetime
    next_available_at: datetime
    tx_hash: str | None = None


class ClaimRejectedResponse(CamelModel):
    reason: RejectionReason
    message: str
    remaining_seconds: int | None = None
    next_available_at: datetime | None = None


_REJECTION_MESSAGES = {
    RejectionReason.INVALID_ADDRESS: "Invalid wallet address format",
    RejectionReason.VERIFICATION_REQUIRED: "Discord verification required before claiming",
    RejectionReason.COOLDOWN_ACTIVE: "Faucet claim on cooldown",
    RejectionReason.DISBURSEMENT_FAILED: "Token transfer failed, please retry",
    RejectionReason.CONFLICT: "Claim collided with another request, please retry",
}


def claim_payload(result: ClaimResult) -> ClaimSuccessResponse | ClaimRejectedResponse:
    if result.claimed:
        return ClaimSuccessResponse(
            amount=format_amount(result.amount),
            claimed_at=result.claimed_at,
            next_available_at=result.next_available_at,
            tx_hash=result.tx_hash,
        )
    remaining = None
    if result.remaining is not None:
        remaining = int(result.remaining.total_seconds())
    return ClaimRejectedResponse(
        reason=result.reason,
        message=_REJECTION_MESSAGES[result.reason],
        remaining_seconds=remaining,
        next_available_at=result.next_available_at,
    )


# --- Verification ---------------------------------------------------------------

class ProofPayload(CamelModel):
    subject: str = Field(min_length=1, max_length=128)
    issued_at: int = Field(ge=0, le=2**40)
    signature: str = Field(min_length=1, max_length=256)

    def to_proof(self) -> VerificationProof:
        return VerificationProof(
            subject=self.subject, issued_at=self.issued_at,
            signature=self.signature,
        )


class VerificationCallback(CamelModel):
    address: str = Field(min_length=1, max_length=100)
    proof: ProofPayload


# --- Stats ----------------------------------------------------------------------

class StatsResponse(CamelModel):
    total_claimed: str
    total_claimers: int
    claim_amount: str
    cooldown_hours: float
    token_symbol: str

    @classmethod
    def from_stats(
        cls, stats: FaucetStats, claim_amount, cooldown_hours: float, token_symbol: str,
    ) -> "StatsResponse":
        return cls(
            total_claimed=format_amount(stats.total_claimed),
            total_claimers=stats.total_claimers,
            claim_amount=format_amount(claim_amount),
            cooldown_hours=cooldown_hours,
            token_symbol=token_symbol,
        )


# --- Wallet lookup --------------------------------------------------------------

class WalletResponse(CamelModel):
    address: str
    verified: bool
    balance_disbursed: str
    claim_count: int
    last_claim_at: datetime | None = None
    next_available_at: datetime | None = None
    can_claim: bool
