"""Error Handlers — map failures onto the faucet's wire contracts.

Invariants:
    - Claim route: a schema failure on a *present* walletAddress (wrong type,
      oversized) is an `invalid_address` rejection, byte-for-byte the body and
      status the engine produces for a malformed address
    - Verification callback: any schema failure is 400 {"status": "invalid"}
    - Other schema failures → 400 VALIDATION_ERROR with field details
    - FaucetError → its own status and envelope; retryable errors (storage or
      relay outage, lost race) carry a Retry-After header
    - Anything else → 500 INTERNAL_ERROR; details go to the log only

Design Decisions:
    - Route-specific mapping lives here, reusing the routes' own response
      builders, so a request never gets two different shapes for one failure
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from faucet.api.routes.faucet_claims import CLAIM_PATH, claim_response
from faucet.api.routes.identity_verification import (
    CALLBACK_PATH, verification_response,
)
from faucet.core.claim_result import ClaimResult
from faucet.core.domain_types import RejectionReason, VerificationOutcome
from faucet.core.errors import ErrorSeverity, FaucetError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FaucetError, faucet_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


async def faucet_error_handler(request: Request, exc: FaucetError) -> JSONResponse:
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(
        exc.message,
        extra={
            "error_code": exc.code, "path": request.url.path,
            "address": exc.context.address,
        },
    )
    headers = None
    if exc.retryable:
        headers = {"Retry-After": str(_retry_after_seconds(exc))}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    path = request.url.path
    errors = exc.errors()
    logger.warning(
        f"Request validation failed: {[e['type'] for e in errors]}",
        extra={"path": path},
    )
    if path == CLAIM_PATH and _is_malformed_wallet_address(errors):
        return claim_response(
            ClaimResult.rejected(RejectionReason.INVALID_ADDRESS),
        )
    if path == CALLBACK_PATH:
        return verification_response(VerificationOutcome.INVALID)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.WARNING.value,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                        "type": e["type"],
                    }
                    for e in errors
                ],
            },
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        extra={"path": request.url.path},
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def _is_malformed_wallet_address(errors) -> bool:
    """True when every error is about a walletAddress that was actually sent."""
    return bool(errors) and all(
        tuple(e["loc"][-1:]) == ("walletAddress",) and e["type"] != "missing"
        for e in errors
    )


def _retry_after_seconds(exc: FaucetError) -> int:
    if exc.context.retry_after_ms is None:
        return 1
    return max(1, math.ceil(exc.context.retry_after_ms / 1000))
