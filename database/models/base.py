"""
Database Models Base

Shared SQLAlchemy base and helpers for all model modules.
"""

from datetime import datetime, timezone
from typing import Optional
import uuid

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

# Shared declarative base for all models
Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in development and tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every stored value is UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def isoformat(value: Optional[datetime]) -> Optional[str]:
    value = ensure_aware(value)
    return value.isoformat() if value else None


def new_uuid() -> str:
    return str(uuid.uuid4())


__all__ = [
    'Base',
    'JSONType',
    'utcnow',
    'ensure_aware',
    'isoformat',
    'new_uuid',
]
