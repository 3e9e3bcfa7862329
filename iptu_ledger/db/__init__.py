"""Database layer - engine, base classes and immutability listeners."""

from iptu_ledger.db.base import Base, TrackedBase, UUIDString
from iptu_ledger.db.engine import (
    create_ledger_engine,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine,
    session_scope,
)

__all__ = [
    "create_ledger_engine",
    "init_engine",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
]
