"""Portable Column Types — exact decimals and timezone-aware timestamps.

Invariants:
    - DecimalText round-trips Decimal values exactly (no float storage on SQLite)
    - UTCDateTime always returns aware UTC datetimes, whatever the backend stores

Design Decisions:
    - TypeDecorator over dialect-specific columns: identical behaviour on
      PostgreSQL (production) and SQLite (tests)
    - Amounts as text: token amounts have 18 decimals and SQLite NUMERIC is REAL
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, String
from sqlalchemy.types import TypeDecorator


class DecimalText(TypeDecorator):
    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return format(Decimal(value), "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("naive datetime cannot be stored")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
