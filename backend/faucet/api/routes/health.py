"""Health — liveness and readiness of the faucet process.

Invariants:
    - GET /health/ answers 200 whenever the process is up
    - GET /health/ready answers 503 until the stats cache has been rebuilt and
      while storage is unreachable; claims served before that could be
      double-counted or fail with DATABASE_ERROR

Design Decisions:
    - Singletons are read through their modules at call time (they are set
      in the lifespan, after this module is imported)
"""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import faucet.infrastructure.database as database
import faucet.services.faucet_runtime as runtime_module

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def liveness():
    return {"status": "healthy", "service": "faucet-api"}


@router.get("/ready")
async def readiness():
    """Storage round-trip plus a started faucet runtime."""
    manager = database.db_manager
    runtime = runtime_module.faucet_runtime
    checks = {
        "database": bool(manager) and await manager.health_check(),
        "faucet": runtime is not None,
    }
    if not all(checks.values()):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {
        "status": "ready",
        "checks": checks,
        "claimAmount": str(runtime.settings.claim_amount),
        "tokenSymbol": runtime.settings.token_symbol,
    }
