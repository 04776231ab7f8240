"""
Presentation settings for ReportingService.

Which section an account lands in is decided by its stored account type,
so nothing here maps account codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Self

from paybook_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


@dataclass
class ReportingConfig:
    """
    ReportingConfig(entity_name="Riverside Auto Salvage", include_zero_balances=True)
    """

    entity_name: str = "Company"
    # ISO 4217
    currency: str = "USD"
    # List accounts with a zero balance on the P&L and balance sheet
    include_zero_balances: bool = False
    # A trial balance or balance sheet off by less than this still balances
    balance_tolerance: Decimal = Decimal("0.01")

    def __post_init__(self):
        if not (self.entity_name or "").strip():
            raise ValueError("entity_name is required")
        if len(self.currency) != 3:
            raise ValueError(f"currency {self.currency!r} is not a 3-letter code")
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance must be zero or more")

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build from parsed YAML or JSON; a float tolerance is read through ``str``."""
        values = dict(data)
        if "balance_tolerance" in values:
            values["balance_tolerance"] = Decimal(str(values["balance_tolerance"]))
        logger.debug("reporting_config_from_dict", extra={"keys": sorted(values)})
        return cls(**values)
