"""
Module: paybook_kernel.models.company
Responsibility: The employer.  Accounts, journal entries, employees and
    payroll records all belong to one company.
Architecture position: Kernel > Models.

SUI and FUTA rates are per employer (SUI is experience-rated, FUTA moves
with state credit reductions) and are kept as percentages: ``3.4`` means 3.4%.
"""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from paybook_kernel.db.base import TrackedBase

DEFAULT_FUTA_RATE_PERCENT = Decimal("0.6")


class Company(TrackedBase):
    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255))
    ein: Mapped[str | None] = mapped_column(String(20))
    # State holding the employer's unemployment account
    state: Mapped[str | None] = mapped_column(String(2))
    sui_rate: Mapped[Decimal] = mapped_column(Numeric(9, 4), default=Decimal("0"))
    futa_rate: Mapped[Decimal] = mapped_column(Numeric(9, 4), default=DEFAULT_FUTA_RATE_PERCENT)

    def __repr__(self) -> str:
        return f"<Company {self.name!r}>"
