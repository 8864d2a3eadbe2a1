"""Session scope type and server clock shared by the faucet services."""

from datetime import datetime, timezone
from typing import AsyncContextManager, Callable

from sqlalchemy.ext.asyncio import AsyncSession

# Zero-arg factory yielding a unit-of-work session, e.g. db_manager.session
SessionScope = Callable[[], AsyncContextManager[AsyncSession]]

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Server wall clock (NTP-synchronized host time), never client-supplied."""
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    """FastAPI dependency for the server clock."""
    return utc_now
