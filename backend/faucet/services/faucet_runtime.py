"""Faucet Runtime — wires store, gate, stats and engine into one process-wide object.

Invariants:
    - Exactly one AddressLockTable per process, shared by engine and gate
    - Stats cache rebuilt from the store before the runtime serves requests

Design Decisions:
    - Module-level singleton initialized in the FastAPI lifespan, exposed via
      get_faucet_runtime() so tests swap it with dependency_overrides
      (ADR: same lifecycle as infrastructure/database.db_manager)
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from faucet.config import Settings
from faucet.core.repository_protocols import Disburser
from faucet.services.address_locks import AddressLockTable
from faucet.services.claim_engine import ClaimEngine
from faucet.services.session_scope import Clock, SessionScope, utc_now
from faucet.services.stats_aggregator import StatsAggregator
from faucet.services.verification_gate import VerificationGate

logger = logging.getLogger(__name__)


@dataclass
class FaucetRuntime:
    settings: Settings
    session_scope: SessionScope
    engine: ClaimEngine
    gate: VerificationGate
    stats: StatsAggregator


def build_runtime(
    settings: Settings,
    session_scope: SessionScope,
    disburser: Disburser,
    clock: Clock = utc_now,
) -> FaucetRuntime:
    locks = AddressLockTable()
    stats = StatsAggregator()
    engine = ClaimEngine(
        session_scope=session_scope,
        disburser=disburser,
        stats=stats,
        locks=locks,
        amount=settings.claim_amount,
        window=settings.cooldown_window,
        disbursement_timeout=settings.disbursement_timeout_seconds,
        conflict_retries=settings.claim_conflict_retries,
        clock=clock,
    )
    gate = VerificationGate(
        session_scope=session_scope,
        locks=locks,
        secret=settings.verification_secret,
        max_age=timedelta(seconds=settings.verification_max_age_seconds),
        clock_skew=timedelta(seconds=settings.verification_clock_skew_seconds),
        clock=clock,
    )
    return FaucetRuntime(
        settings=settings, session_scope=session_scope,
        engine=engine, gate=gate, stats=stats,
    )


# Singleton (initialized on startup)
faucet_runtime: FaucetRuntime | None = None


async def init_faucet(
    settings: Settings, session_scope: SessionScope, disburser: Disburser,
) -> FaucetRuntime:
    global faucet_runtime
    runtime = build_runtime(settings, session_scope, disburser)
    await runtime.stats.rebuild(session_scope)
    faucet_runtime = runtime
    logger.info(
        f"Faucet ready: {settings.claim_amount} {settings.token_symbol} "
        f"every {settings.cooldown_hours}h",
    )
    return runtime


def get_faucet_runtime() -> FaucetRuntime:
    """FastAPI dependency for the faucet runtime."""
    if not faucet_runtime:
        raise RuntimeError("Faucet runtime not initialized")
    return faucet_runtime
