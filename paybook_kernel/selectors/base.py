"""
Module: paybook_kernel.selectors.base
Responsibility: Common parent of the read-side query objects.
Architecture position: Kernel > Selectors.

Selectors only read: they never add, flush or commit, and they hand back
frozen dataclasses rather than live ORM rows, so reports cannot mutate
the ledger by accident.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from paybook_kernel.db.base import Base

RowT = TypeVar("RowT", bound=Base)


class BaseSelector(Generic[RowT]):
    """Holds the caller's session; the caller owns its transaction."""

    def __init__(self, session: Session):
        self.session = session
