"""Database module."""

from multiguard.api.db.session import get_db, init_db, close_db, get_session_maker
from multiguard.api.db.models import Base, User, ResourceRecord, AuditLogRecord
from multiguard.api.db.stores import (
    IdentityStore,
    ResourceStore,
    SqlIdentityStore,
    SqlResourceStore,
    MemoryIdentityStore,
    MemoryResourceStore,
)

__all__ = [
    "get_db",
    "init_db",
    "close_db",
    "get_session_maker",
    "Base",
    "User",
    "ResourceRecord",
    "AuditLogRecord",
    "IdentityStore",
    "ResourceStore",
    "SqlIdentityStore",
    "SqlResourceStore",
    "MemoryIdentityStore",
    "MemoryResourceStore",
]
