"""Faucet API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FaucetError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, disbursement client and faucet runtime initialized in lifespan;
      the stats cache is rebuilt before the first request is served

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py: domain, validation, catch-all
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from faucet.api.error_handlers import register_error_handlers
from faucet.api.routes import (
    faucet_claims, health, identity_verification, wallet_lookup,
)
from faucet.config import get_settings
from faucet.infrastructure.database import init_db
from faucet.infrastructure.disbursement_client import HttpDisbursementClient
from faucet.infrastructure.observability import setup_logging
from faucet.services.faucet_runtime import init_faucet

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    disburser = HttpDisbursementClient(
        base_url=settings.disbursement_url,
        api_key=settings.disbursement_api_key,
        chain_id=settings.chain_id,
        max_retries=settings.disbursement_max_retries,
        timeout_seconds=settings.disbursement_request_timeout_seconds,
    )
    await init_faucet(settings, db.session, disburser)
    logger.info("Faucet API started")
    yield
    logger.info("Faucet API shutting down")
    await disburser.close()
    await db.dispose()


app = FastAPI(
    title="Faucet API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(faucet_claims.router)
app.include_router(identity_verification.router)
app.include_router(wallet_lookup.router)

register_error_handlers(app)
