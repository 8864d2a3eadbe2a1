"""Service test fixtures — per-test SQLite database, faucet runtime, and HTTP client.

Invariants:
    - Every test gets a fresh file-backed SQLite database under tmp_path
    - db_scope is a real DatabaseSessionManager.session (same error mapping as prod)
    - get_db / get_faucet_runtime / get_settings overridden for route tests
    - The server clock is pinned to T0 unless a test passes `now` explicitly

Design Decisions:
    - File-backed SQLite over :memory: so concurrent sessions see each other's
      commits (an in-memory database is private to one connection)
    - DatabaseSessionManager wraps the test engine directly (no URL pool options)
"""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from httpx import ASGITransport, AsyncClient

from faucet.config import Settings, get_settings
from faucet.db.base import Base
from faucet.infrastructure.database import get_db, DatabaseSessionManager
from faucet.main import app
from faucet.services.faucet_runtime import build_runtime, get_faucet_runtime
from faucet.services.identity_store import IdentityStore
from faucet.services.session_scope import get_clock
import faucet.models  # noqa: F401

from tests.services.fake_disburser import FakeDisburser
from tests.services.sample_data import ADDRESS, T0, TEST_SECRET


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite:///unused.db",
        claim_amount=Decimal("0.05"),
        cooldown_hours=24,
        disbursement_timeout_seconds=0.2,
        disbursement_request_timeout_seconds=0.1,
        verification_secret=TEST_SECRET,
    )


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'faucet.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_manager(test_engine):
    return DatabaseSessionManager(test_engine)


@pytest.fixture
def db_scope(db_manager):
    return db_manager.session


@pytest.fixture
def disburser():
    return FakeDisburser()


@pytest.fixture
def clock():
    """Mutable server clock: set clock.now to move time."""
    class _Clock:
        now = T0

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture
def runtime(settings, db_scope, disburser, clock):
    return build_runtime(settings, db_scope, disburser, clock=clock)


@pytest.fixture
def mark_verified(db_scope):
    """Flip an address to verified directly through the store."""
    async def _mark(address=ADDRESS):
        async with db_scope() as db:
            store = IdentityStore(db)
            record = await store.get(address)
            await store.compare_and_update(
                address, record.version, {"verified": True, "verified_at": T0},
            )
            await db.commit()
    return _mark


@pytest.fixture
def read_record(db_scope):
    async def _read(address=ADDRESS):
        async with db_scope() as db:
            return await IdentityStore(db).find(address)
    return _read


@pytest.fixture
async def client(runtime, settings, clock, db_manager):
    """FastAPI test client with DB, settings and runtime dependencies overridden."""
    async def override_get_db():
        async with db_manager.session() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_faucet_runtime] = lambda: runtime
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
