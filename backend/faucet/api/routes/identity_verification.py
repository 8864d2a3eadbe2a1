"""Identity Verification — callback endpoint that completes the provider handshake.

Invariants:
    - 200 {"status": "ok"} when the address is (now or already) verified
    - 400 {"status": "invalid"} for a bad proof, malformed address or malformed
      body (see api/error_handlers.py); which check failed is only logged
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from faucet.core.domain_types import VerificationOutcome
from faucet.schemas.faucet import VerificationCallback
from faucet.services.faucet_runtime import FaucetRuntime, get_faucet_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/verification", tags=["verification"])


def verification_response(outcome: VerificationOutcome) -> JSONResponse:
    status_code = (
        status.HTTP_200_OK if outcome == VerificationOutcome.OK
        else status.HTTP_400_BAD_REQUEST
    )
    return JSONResponse(status_code=status_code, content={"status": outcome.value})


@router.post("/callback")
async def verification_callback(
    body: VerificationCallback,
    runtime: FaucetRuntime = Depends(get_faucet_runtime),
):
    outcome = await runtime.gate.mark_verified(body.address, body.proof.to_proof())
    return verification_response(outcome)


CALLBACK_PATH = router.prefix + "/callback"
