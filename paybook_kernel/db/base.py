"""
Module: paybook_kernel.db.base
Responsibility: Declarative base for every paybook table.  Fixes the column
    type for each Python annotation, the UUID primary key, constraint
    naming, and the who/when columns carried by mutable business rows.
Architecture position: Kernel > DB.  Imported by every ORM module in the
    kernel and in paybook_modules; imports nothing from paybook itself.

Invariants enforced:
    - Every row has a uuid4 primary key stored as a 36-character string,
      so the same schema runs on PostgreSQL and SQLite.
    - ``Decimal`` annotations become Numeric(38, 9); money is never a float
      column.
    - Rows deriving from TrackedBase always name the actor that created
      them (created_by_id NOT NULL).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, MetaData, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# Deterministic constraint names keep PostgreSQL and SQLite schemas comparable
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Root of the paybook schema; untracked tables (audit log, counters) derive directly."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        date: Date,
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Business rows (companies, accounts, employees, journal entries, payroll
    records) that remember who created and who last changed them.

    Timestamps come from the database clock; ``updated_at`` is refreshed on
    every UPDATE.  Services set ``updated_by_id`` whenever they mutate a row.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
    created_by_id: Mapped[UUID] = mapped_column(UUIDString())
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString())
