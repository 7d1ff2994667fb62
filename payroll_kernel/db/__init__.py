"""Database layer: declarative base, engine and session handling, immutability listeners."""

from payroll_kernel.db.base import MONEY, Base, TrackedBase
from payroll_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "MONEY",
    "Base",
    "TrackedBase",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
]
