"""Faucet Claims — POST /faucet/claim and GET /faucet/stats.

Invariants:
    - The claim time is always server time (the body carries only walletAddress)
    - Every rejection returns a stable `reason` with a reason-specific HTTP status
    - Stats are served from the aggregator cache (no DB hit per poll)
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from faucet.core.claim_result import ClaimResult
from faucet.core.domain_types import RejectionReason
from faucet.schemas.faucet import (
    ClaimRequest, ClaimRejectedResponse, ClaimSuccessResponse,
    StatsResponse, claim_payload,
)
from faucet.services.faucet_runtime import FaucetRuntime, get_faucet_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/faucet", tags=["faucet"])

REJECTION_STATUS = {
    RejectionReason.INVALID_ADDRESS: status.HTTP_400_BAD_REQUEST,
    RejectionReason.VERIFICATION_REQUIRED: status.HTTP_403_FORBIDDEN,
    RejectionReason.COOLDOWN_ACTIVE: status.HTTP_429_TOO_MANY_REQUESTS,
    RejectionReason.DISBURSEMENT_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    RejectionReason.CONFLICT: status.HTTP_409_CONFLICT,
}


def claim_response(result: ClaimResult) -> JSONResponse:
    """Serialize a ClaimResult with its status code and Retry-After hint."""
    payload = claim_payload(result)
    status_code = (
        status.HTTP_200_OK if result.claimed
        else REJECTION_STATUS[result.reason]
    )
    headers = None
    if result.remaining is not None:
        headers = {"Retry-After": str(max(1, int(result.remaining.total_seconds())))}
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(by_alias=True, mode="json", exclude_none=True),
        headers=headers,
    )


@router.post(
    "/claim",
    response_model=ClaimSuccessResponse,
    responses={
        code: {"model": ClaimRejectedResponse}
        for code in set(REJECTION_STATUS.values())
    },
)
async def claim_tokens(
    body: ClaimRequest, runtime: FaucetRuntime = Depends(get_faucet_runtime),
):
    """Claim the fixed faucet amount for a verified wallet."""
    return claim_response(await runtime.engine.claim(body.wallet_address))


CLAIM_PATH = router.prefix + "/claim"


@router.get("/stats", response_model=StatsResponse)
async def faucet_stats(runtime: FaucetRuntime = Depends(get_faucet_runtime)):
    """Aggregate totals; safe to poll."""
    settings = runtime.settings
    return StatsResponse.from_stats(
        runtime.stats.snapshot(),
        claim_amount=settings.claim_amount,
        cooldown_hours=settings.cooldown_hours,
        token_symbol=settings.token_symbol,
    )
