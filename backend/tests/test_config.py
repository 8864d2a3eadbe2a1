"""Settings — driver URL rewrite, cooldown window, relay timeout bound."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from faucet.config import Settings, asyncpg_url


def test_plain_postgres_url_gets_async_driver():
    assert asyncpg_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
    assert asyncpg_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"
    settings = Settings(database_url="postgresql://u:p@h/db")
    assert settings.database_url.startswith("postgresql+asyncpg://")


def test_cooldown_window_from_hours():
    assert Settings(cooldown_hours=1.5).cooldown_window == timedelta(minutes=90)


def test_relay_bound_shorter_than_one_request_is_refused():
    with pytest.raises(ValidationError):
        Settings(
            disbursement_timeout_seconds=1,
            disbursement_request_timeout_seconds=5,
        )
