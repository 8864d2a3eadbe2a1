"""Wallet Lookup — read-only view of one wallet's faucet state.

Invariants:
    - Never creates an identity record (unknown wallets get a default view)
    - canClaim / nextAvailableAt are computed from server time; they are hints
      for the UI, the claim endpoint re-checks everything
    - Malformed addresses raise AddressFormatError (400 via global handler)
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from faucet.config import Settings, get_settings
from faucet.core.cooldown_policy import evaluate
from faucet.core.errors import AddressFormatError
from faucet.core.faucet_stats import format_amount
from faucet.core.identity_record import IdentityRecord
from faucet.core.wallet_address import parse_wallet_address
from faucet.infrastructure.database import get_db
from faucet.schemas.faucet import WalletResponse
from faucet.services.identity_store import IdentityStore
from faucet.services.session_scope import Clock, get_clock

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/wallet/{wallet_address}", response_model=WalletResponse)
async def get_wallet(
    wallet_address: str,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
):
    address = parse_wallet_address(wallet_address)
    if address is None:
        raise AddressFormatError(wallet_address)

    record = await IdentityStore(db).find(address) or IdentityRecord(address=address)
    now = clock()
    decision = evaluate(record.last_claim_at, now, settings.cooldown_window)
    return WalletResponse(
        address=record.address,
        verified=record.verified,
        balance_disbursed=format_amount(record.balance_disbursed),
        claim_count=record.claim_count,
        last_claim_at=record.last_claim_at,
        next_available_at=(
            decision.next_available_at(now) if not decision.eligible else None
        ),
        can_claim=record.verified and decision.eligible,
    )
