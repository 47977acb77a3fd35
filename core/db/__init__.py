from core.db.base import Base
from core.db.mixins import (
    OrganizationMixin,
    SoftDeleteMixin,
    TimestampMixin,
    as_utc,
    utcnow,
)
from core.db.session import async_session_factory, engine, get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "OrganizationMixin",
    "as_utc",
    "utcnow",
    "async_session_factory",
    "engine",
    "get_db",
]
