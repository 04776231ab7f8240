"""Engine and sessions, the declarative bases and the money helpers."""

from paybook_kernel.db.base import Base, TrackedBase, UUIDString
from paybook_kernel.db.engine import create_tables, get_engine, get_session, session_scope
from paybook_kernel.db.types import ZERO, round_money, to_decimal

__all__ = [
    "Base", "TrackedBase", "UUIDString",
    "create_tables", "get_engine", "get_session", "session_scope",
    "ZERO", "round_money", "to_decimal",
]
