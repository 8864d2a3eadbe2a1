"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real relay or database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("DISBURSEMENT_URL", "http://relay.invalid")
os.environ.setdefault("VERIFICATION_SECRET", "test-verification-secret")
