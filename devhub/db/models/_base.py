# db/models/_base.py
from datetime import datetime
from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import DeclarativeBase
from devhub.utils.clock import UtcClock

# PostgreSQL gets native array/jsonb columns; other dialects (SQLite in tests) store JSON.
StringList = ARRAY(String(128)).with_variant(JSON(), "sqlite")
JsonDocument = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return UtcClock().now()


class Base(DeclarativeBase):
    pass
