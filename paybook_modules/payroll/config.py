"""
Payroll Configuration Schema.

Defines the structure and sensible defaults for payroll settings.
Company-specific values override the defaults at instantiation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from paybook_kernel.logging_config import get_logger
from paybook_modules.payroll.profiles import (
    DEFAULT_ACCOUNT_CODES,
    OPTIONAL_ROLES,
    AccountRole,
)

logger = get_logger("modules.payroll.config")


@dataclass
class PayrollConfig:
    """
    Configuration schema for the payroll module.

    Field defaults represent a weekly NY employer using the default chart
    of accounts:

        config = PayrollConfig(
            default_overtime_multiplier=Decimal("2.0"),
            account_mappings={**DEFAULT_ACCOUNT_CODES,
                              AccountRole.WAGES_EXPENSE: "6005"},
        )
    """

    # Account role mappings (role -> account code)
    account_mappings: dict[AccountRole, str] = field(
        default_factory=lambda: dict(DEFAULT_ACCOUNT_CODES)
    )

    # Work week
    standard_hours_per_week: Decimal = Decimal("40")
    default_overtime_multiplier: Decimal = Decimal("1.5")

    # Largest debit/credit difference absorbed into the net-pay line
    balance_tolerance: Decimal = Decimal("0.02")

    # Skip hourly employees with no hours in run_payroll
    skip_zero_hour_employees: bool = True

    def __post_init__(self):
        missing = [
            role.value for role in AccountRole
            if role not in OPTIONAL_ROLES and not self.account_mappings.get(role)
        ]
        if missing:
            raise ValueError(f"account_mappings is missing required roles: {missing}")

        if self.standard_hours_per_week <= 0:
            raise ValueError("standard_hours_per_week must be positive")
        if self.default_overtime_multiplier < 1:
            raise ValueError("default_overtime_multiplier cannot be below 1")
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")

        logger.debug(
            "payroll_config_initialized",
            extra={
                "standard_hours_per_week": str(self.standard_hours_per_week),
                "default_overtime_multiplier": str(self.default_overtime_multiplier),
                "balance_tolerance": str(self.balance_tolerance),
                "mapped_roles": len(self.account_mappings),
            },
        )

    def code_for(self, role: AccountRole) -> str | None:
        return self.account_mappings.get(role)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the default chart-of-accounts codes."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary (e.g. loaded from company settings)."""
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        if "account_mappings" in data:
            data["account_mappings"] = {
                AccountRole(role): str(code)
                for role, code in data["account_mappings"].items()
            }
        for key in ("standard_hours_per_week", "default_overtime_multiplier", "balance_tolerance"):
            if key in data:
                data[key] = Decimal(str(data[key]))
        return cls(**data)
