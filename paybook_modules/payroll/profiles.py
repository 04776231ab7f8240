"""
Payroll Posting Profile.

Declares how a batch of payroll records becomes one journal entry: which
account role each line uses, which side it sits on, and which record
components are summed into it.

    Dr Wages & Salaries          gross pay
    Dr Payroll Tax Expense       employer taxes
        Cr Federal Tax Payable   federal income tax
        Cr State Tax Payable     state + local income tax
        Cr Social Security       employee + employer
        Cr Medicare              employee + employer + additional
        Cr FUTA / SUI Payable    employer unemployment taxes
        Cr SDI / PFL Payable     employee disability and family leave
        Cr Deductions Payable    pre-tax + post-tax deductions
        Cr Payroll Liabilities   net pay

Debits equal credits by construction: gross + employer taxes ==
withholdings + employer taxes + deductions + net pay.
"""

from dataclasses import dataclass
from enum import Enum

from paybook_kernel.models.journal import LineSide


class AccountRole(Enum):
    """Logical account roles for payroll posting."""

    WAGES_EXPENSE = "wages_expense"
    PAYROLL_TAX_EXPENSE = "payroll_tax_expense"
    NET_PAY_PAYABLE = "net_pay_payable"
    FEDERAL_TAX_PAYABLE = "federal_tax_payable"
    STATE_TAX_PAYABLE = "state_tax_payable"
    SOCIAL_SECURITY_PAYABLE = "social_security_payable"
    MEDICARE_PAYABLE = "medicare_payable"
    FUTA_PAYABLE = "futa_payable"
    SUI_PAYABLE = "sui_payable"
    SDI_PAYABLE = "sdi_payable"
    PFL_PAYABLE = "pfl_payable"
    DEDUCTIONS_PAYABLE = "deductions_payable"


DEFAULT_ACCOUNT_CODES: dict[AccountRole, str] = {
    AccountRole.WAGES_EXPENSE: "6000",
    AccountRole.PAYROLL_TAX_EXPENSE: "6010",
    AccountRole.NET_PAY_PAYABLE: "2100",
    AccountRole.FEDERAL_TAX_PAYABLE: "2110",
    AccountRole.STATE_TAX_PAYABLE: "2120",
    AccountRole.SOCIAL_SECURITY_PAYABLE: "2130",
    AccountRole.MEDICARE_PAYABLE: "2140",
    AccountRole.FUTA_PAYABLE: "2150",
    AccountRole.SUI_PAYABLE: "2160",
    AccountRole.SDI_PAYABLE: "2170",
    AccountRole.PFL_PAYABLE: "2180",
    AccountRole.DEDUCTIONS_PAYABLE: "2190",
}

# When absent, deductions fold into the net-pay liability line.
OPTIONAL_ROLES = frozenset({AccountRole.DEDUCTIONS_PAYABLE})


@dataclass(frozen=True)
class PayrollLineMapping:
    """One journal line of the payroll posting."""

    role: AccountRole
    side: LineSide
    description: str
    components: tuple[str, ...]


PAYROLL_POSTING_LINES: tuple[PayrollLineMapping, ...] = (
    PayrollLineMapping(
        AccountRole.WAGES_EXPENSE, LineSide.DEBIT, "Gross wages",
        ("gross_pay",),
    ),
    PayrollLineMapping(
        AccountRole.PAYROLL_TAX_EXPENSE, LineSide.DEBIT, "Employer payroll taxes",
        ("total_employer_cost",),
    ),
    PayrollLineMapping(
        AccountRole.FEDERAL_TAX_PAYABLE, LineSide.CREDIT, "Federal income tax withheld",
        ("federal_income_tax",),
    ),
    PayrollLineMapping(
        AccountRole.STATE_TAX_PAYABLE, LineSide.CREDIT, "State and local income tax withheld",
        ("state_income_tax", "local_tax"),
    ),
    PayrollLineMapping(
        AccountRole.SOCIAL_SECURITY_PAYABLE, LineSide.CREDIT, "Social Security (EE + ER)",
        ("social_security_employee", "social_security_employer"),
    ),
    PayrollLineMapping(
        AccountRole.MEDICARE_PAYABLE, LineSide.CREDIT, "Medicare (EE + ER + additional)",
        ("medicare_employee", "medicare_employer", "additional_medicare"),
    ),
    PayrollLineMapping(
        AccountRole.FUTA_PAYABLE, LineSide.CREDIT, "FUTA",
        ("futa_employer",),
    ),
    PayrollLineMapping(
        AccountRole.SUI_PAYABLE, LineSide.CREDIT, "SUI",
        ("sui_employer",),
    ),
    PayrollLineMapping(
        AccountRole.SDI_PAYABLE, LineSide.CREDIT, "SDI withheld",
        ("sdi",),
    ),
    PayrollLineMapping(
        AccountRole.PFL_PAYABLE, LineSide.CREDIT, "PFL withheld",
        ("pfl",),
    ),
    PayrollLineMapping(
        AccountRole.DEDUCTIONS_PAYABLE, LineSide.CREDIT, "Employee deductions withheld",
        ("total_pre_tax_deductions", "total_post_tax_deductions"),
    ),
    PayrollLineMapping(
        AccountRole.NET_PAY_PAYABLE, LineSide.CREDIT, "Net pay",
        ("net_pay",),
    ),
)
